"""
Business logic for support tickets.

Visitors open tickets from the contact page; administrators list them,
move them through ``open`` → ``in-progress`` → ``resolved``/``closed``
and see summary statistics.  Tickets that are no longer open and have
not been touched for ``settings.ticket_retention_days`` are deleted
each time the admin listing is loaded.
"""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import List, Optional, Union

from politirate_api.app.core.config import settings
from politirate_api.app.core.db import (
    generate_id,
    get_connection,
    like_pattern,
    to_timestamp,
    utc_now,
    utc_now_iso,
)
from politirate_api.app.core.exceptions import DataAccessError, NotFoundError, ValidationError
from ..schemas.support import (
    CONTACT_KEYS,
    TICKET_STATUSES,
    SupportTicket,
    SupportTicketCreate,
    SupportTicketStats,
    TicketFilters,
)
from .aggregates import average_hours

logger = logging.getLogger(__name__)

STALE_STATUSES = ("in-progress", "resolved", "closed")


def _row_to_ticket(row: sqlite3.Row) -> SupportTicket:
    return SupportTicket(**dict(row))


class SupportService:
    """Service for support tickets."""

    @classmethod
    async def create_support_ticket(cls, data: SupportTicketCreate) -> SupportTicket:
        now = utc_now_iso()
        ticket = SupportTicket(
            id=generate_id(),
            user_id=data.user_id,
            user_name=data.user_name,
            user_email=data.user_email,
            subject=data.subject,
            message=data.message,
            status="open",
            created_at=now,
            updated_at=now,
        )
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO support_tickets (id, user_id, user_name, user_email, subject, message, "
                "status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    ticket.id,
                    ticket.user_id,
                    ticket.user_name,
                    ticket.user_email,
                    ticket.subject,
                    ticket.message,
                    ticket.status,
                    ticket.created_at,
                    ticket.updated_at,
                ),
            )
            conn.commit()
            logger.info("Support ticket %s opened by %s", ticket.id, ticket.user_email)
            return ticket
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error creating support ticket: %s", e)
            raise DataAccessError("Failed to create support ticket") from e
        finally:
            conn.close()

    @classmethod
    async def purge_stale_tickets(cls, now: Union[datetime, str, None] = None) -> int:
        """Delete non-open tickets idle for longer than the retention period.

        Returns the number of deleted tickets.  Failures are logged and
        reported as ``0`` so they never block the listing.
        """
        moment = datetime.fromisoformat(to_timestamp(now)) if now is not None else utc_now()
        cutoff = to_timestamp(moment - timedelta(days=settings.ticket_retention_days))
        marks = ", ".join("?" for _ in STALE_STATUSES)
        conn = get_connection()
        try:
            cursor = conn.execute(
                f"DELETE FROM support_tickets WHERE status IN ({marks}) AND updated_at < ?",
                (*STALE_STATUSES, cutoff),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error purging stale support tickets: %s", e)
            return 0
        finally:
            conn.close()
        if cursor.rowcount:
            logger.info("Purged %s stale support tickets", cursor.rowcount)
        return cursor.rowcount

    @classmethod
    async def get_support_tickets(cls, filters: Optional[TicketFilters] = None) -> List[SupportTicket]:
        """List tickets, newest first, after purging stale ones.

        The date range is applied only when both ends are given; the
        search matches user name, email or subject case-insensitively.
        """
        filters = filters or TicketFilters()
        await cls.purge_stale_tickets()
        query = "SELECT * FROM support_tickets"
        where: list[str] = []
        params: list = []
        if filters.status:
            where.append("status = ?")
            params.append(filters.status)
        if filters.date_from and filters.date_to:
            where.append("created_at >= ? AND created_at <= ?")
            params.extend([to_timestamp(filters.date_from), to_timestamp(filters.date_to)])
        if filters.search_query:
            pattern = like_pattern(filters.search_query)
            where.append(
                "(user_name LIKE ? ESCAPE '\\' OR user_email LIKE ? ESCAPE '\\'"
                " OR subject LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY created_at DESC"
        conn = get_connection()
        try:
            return [_row_to_ticket(row) for row in conn.execute(query, tuple(params)).fetchall()]
        except sqlite3.Error as e:
            logger.error("Error fetching support tickets: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def update_ticket_status(
        cls, ticket_id: str, status: str, admin_notes: Optional[str] = None
    ) -> None:
        """Change a ticket's status and notes; stamps ``resolved_at`` on resolve/close."""
        if status not in TICKET_STATUSES:
            raise ValidationError(f"Invalid ticket status: {status}")
        now = utc_now_iso()
        if status in ("resolved", "closed"):
            statement = (
                "UPDATE support_tickets SET status = ?, admin_notes = ?, updated_at = ?, "
                "resolved_at = ? WHERE id = ?"
            )
            params = (status, admin_notes, now, now, ticket_id)
        else:
            statement = (
                "UPDATE support_tickets SET status = ?, admin_notes = ?, updated_at = ? WHERE id = ?"
            )
            params = (status, admin_notes, now, ticket_id)
        conn = get_connection()
        try:
            cursor = conn.execute(statement, params)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error updating ticket status: %s", e)
            raise DataAccessError("Failed to update ticket status") from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        logger.info("Ticket %s moved to %s", ticket_id, status)

    @classmethod
    async def get_support_ticket_stats(cls) -> SupportTicketStats:
        """Counts per status, mean resolution time and the public contact details."""
        conn = get_connection()
        try:
            status_rows = conn.execute(
                "SELECT status, COUNT(*) AS total FROM support_tickets GROUP BY status"
            ).fetchall()
            resolved_rows = conn.execute(
                "SELECT created_at, resolved_at FROM support_tickets WHERE resolved_at IS NOT NULL"
            ).fetchall()
            marks = ", ".join("?" for _ in CONTACT_KEYS)
            contact_rows = conn.execute(
                f"SELECT key, value FROM site_settings WHERE key IN ({marks})", CONTACT_KEYS
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching ticket stats: %s", e)
            return SupportTicketStats()
        finally:
            conn.close()

        counts = {row["status"]: row["total"] for row in status_rows}
        durations = [
            (
                datetime.fromisoformat(row["resolved_at"]) - datetime.fromisoformat(row["created_at"])
            ).total_seconds()
            for row in resolved_rows
        ]
        contacts = {row["key"]: row["value"] or None for row in contact_rows}
        return SupportTicketStats(
            total=sum(counts.values()),
            open=counts.get("open", 0),
            in_progress=counts.get("in-progress", 0),
            resolved=counts.get("resolved", 0),
            closed=counts.get("closed", 0),
            avg_resolution_hours=average_hours(durations),
            **{key: contacts.get(key) for key in CONTACT_KEYS},
        )
