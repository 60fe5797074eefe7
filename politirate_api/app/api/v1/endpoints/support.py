"""
API endpoints for support tickets.

Anyone may open a ticket.  Listing, status changes and statistics are
for administrators.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import get_current_user, require_admin
from politirate_api.app.schemas.support import (
    SupportTicket,
    SupportTicketCreate,
    SupportTicketStats,
    TicketFilters,
    TicketStatus,
    TicketStatusUpdate,
)
from politirate_api.app.services.support_service import SupportService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.post(
    "/tickets",
    response_model=SupportTicket,
    status_code=status.HTTP_201_CREATED,
    summary="Open a support ticket",
)
async def create_ticket(
    data: SupportTicketCreate,
    current_user: dict = Depends(get_current_user),
) -> SupportTicket:
    """Open a ticket; a signed-in caller's id is attached when the body has none."""
    if data.user_id is None and current_user["user_id"]:
        data = data.model_copy(update={"user_id": current_user["user_id"]})
    try:
        return await SupportService.create_support_ticket(data)
    except PolitirateError as e:
        raise http_error(e)


@router.get("/tickets", response_model=List[SupportTicket], summary="List support tickets")
async def list_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, email or subject"),
    current_user: dict = Depends(require_admin),
) -> List[SupportTicket]:
    filters = TicketFilters(
        status=status_filter, date_from=date_from, date_to=date_to, search_query=search
    )
    return await SupportService.get_support_tickets(filters)


@router.put(
    "/tickets/{ticket_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update ticket status",
)
async def update_ticket_status(
    ticket_id: str,
    data: TicketStatusUpdate,
    current_user: dict = Depends(require_admin),
) -> None:
    try:
        await SupportService.update_ticket_status(ticket_id, data.status, data.admin_notes)
    except PolitirateError as e:
        raise http_error(e)


@router.get(
    "/stats",
    response_model=SupportTicketStats,
    response_model_by_alias=True,
    summary="Ticket statistics",
)
async def ticket_stats(current_user: dict = Depends(require_admin)) -> SupportTicketStats:
    return await SupportService.get_support_ticket_stats()
