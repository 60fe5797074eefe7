"""Filter payloads shared by the dashboard counters."""

from datetime import datetime
from typing import Optional

from .base import CamelModel


class CountFilters(CamelModel):
    """Filters for the user, leader and rating counters.

    The date range applies only when both ends are given.  ``state``
    matches exactly; ``constituency`` is a case-insensitive substring.
    """

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    state: Optional[str] = None
    constituency: Optional[str] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None
