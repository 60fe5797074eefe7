"""
Pydantic schemas for site-wide notifications.

A notification is shown as a banner while it is active and the current
time falls inside its optional start/end window.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, model_validator

from .base import CamelModel


class NotificationPayload(CamelModel):
    """Fields accepted when creating or replacing a notification."""

    message: str = Field(..., min_length=1)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_active: bool = True
    link: Optional[str] = None

    @model_validator(mode="after")
    def window_order(self) -> "NotificationPayload":
        if self.start_time and self.end_time and _aware(self.end_time) < _aware(self.start_time):
            raise ValueError("end_time must not be before start_time")
        return self


def _aware(value: datetime) -> datetime:
    # Naive values are stored as UTC, so compare them as UTC too.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SiteNotification(CamelModel):
    id: str
    message: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_active: bool
    created_at: str
    link: Optional[str] = None
