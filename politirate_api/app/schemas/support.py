"""
Pydantic schemas for support tickets.

Tickets can be opened by signed-in users or by anonymous visitors (no
``user_id``).  Ticket fields keep their column names on the wire; the
statistics payload mixes camelCase counters with the snake_case contact
setting keys it copies from ``site_settings``.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


TicketStatus = Literal["open", "in-progress", "resolved", "closed"]
TICKET_STATUSES = ("open", "in-progress", "resolved", "closed")
CONTACT_KEYS = ("contact_email", "contact_phone", "contact_twitter", "contact_linkedin", "contact_youtube")


class SupportTicketCreate(BaseModel):
    """Schema for opening a support ticket."""

    user_id: Optional[str] = None
    user_name: str = Field(..., min_length=1)
    user_email: str = Field(..., min_length=3)
    subject: str = Field(..., min_length=1, description="Subject or title of the support request")
    message: str = Field(..., min_length=1)


class SupportTicket(BaseModel):
    id: str
    user_id: Optional[str] = None
    user_name: str
    user_email: str
    subject: str
    message: str
    status: TicketStatus
    created_at: str
    updated_at: str
    resolved_at: Optional[str] = None
    admin_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TicketFilters(BaseModel):
    """Listing filters; the date range applies only when both ends are set."""

    status: Optional[TicketStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search_query: Optional[str] = None


class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    admin_notes: Optional[str] = None


class SupportTicketStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    open: int = 0
    in_progress: int = Field(0, alias="inProgress")
    resolved: int = 0
    closed: int = 0
    avg_resolution_hours: Optional[int] = Field(None, alias="avgResolutionHours")
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_twitter: Optional[str] = None
    contact_linkedin: Optional[str] = None
    contact_youtube: Optional[str] = None
