"""
Business logic for site-wide notification banners.
"""

import logging
import sqlite3
from typing import List, Optional

from politirate_api.app.core.db import generate_id, get_connection, to_timestamp, utc_now_iso
from politirate_api.app.core.exceptions import DataAccessError, NotFoundError
from ..schemas.notification import NotificationPayload, SiteNotification

logger = logging.getLogger(__name__)


def _row_to_notification(row: sqlite3.Row) -> SiteNotification:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return SiteNotification(**data)


class NotificationService:
    """Service for notification banners."""

    @classmethod
    async def get_notifications(cls) -> List[SiteNotification]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT * FROM notifications ORDER BY created_at DESC").fetchall()
            return [_row_to_notification(row) for row in rows]
        except sqlite3.Error as e:
            logger.error("Error fetching notifications: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def get_active_notifications(cls) -> List[SiteNotification]:
        """Active notifications whose window (if any) contains the current time."""
        now = utc_now_iso()
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM notifications WHERE is_active = 1"
                " AND (start_time IS NULL OR start_time <= ?)"
                " AND (end_time IS NULL OR end_time >= ?)"
                " ORDER BY created_at DESC",
                (now, now),
            ).fetchall()
            return [_row_to_notification(row) for row in rows]
        except sqlite3.Error as e:
            logger.error("Error fetching active notifications: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def get_notification_by_id(cls, notification_id: str) -> Optional[SiteNotification]:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM notifications WHERE id = ?", (notification_id,)
            ).fetchone()
            return _row_to_notification(row) if row else None
        except sqlite3.Error as e:
            logger.error("Error fetching notification %s: %s", notification_id, e)
            return None
        finally:
            conn.close()

    @classmethod
    async def add_notification(cls, data: NotificationPayload) -> SiteNotification:
        notification = SiteNotification(
            id=generate_id(),
            message=data.message,
            start_time=to_timestamp(data.start_time),
            end_time=to_timestamp(data.end_time),
            is_active=data.is_active,
            created_at=utc_now_iso(),
            link=data.link,
        )
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO notifications (id, message, start_time, end_time, is_active, created_at, link) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    notification.id,
                    notification.message,
                    notification.start_time,
                    notification.end_time,
                    1 if notification.is_active else 0,
                    notification.created_at,
                    notification.link,
                ),
            )
            conn.commit()
            logger.info("Notification %s created", notification.id)
            return notification
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error adding notification: %s", e)
            raise DataAccessError("Failed to add notification") from e
        finally:
            conn.close()

    @classmethod
    async def update_notification(
        cls, notification_id: str, data: NotificationPayload
    ) -> SiteNotification:
        """Replace a notification's content and window; returns the stored row."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE notifications SET message = ?, start_time = ?, end_time = ?, "
                "is_active = ?, link = ? WHERE id = ?",
                (
                    data.message,
                    to_timestamp(data.start_time),
                    to_timestamp(data.end_time),
                    1 if data.is_active else 0,
                    data.link,
                    notification_id,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error updating notification: %s", e)
            raise DataAccessError("Failed to update notification") from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Notification {notification_id} not found")
        logger.info("Notification %s updated", notification_id)
        updated = await cls.get_notification_by_id(notification_id)
        if updated is None:
            raise NotFoundError(f"Notification {notification_id} not found")
        return updated

    @classmethod
    async def delete_notification(cls, notification_id: str) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute("DELETE FROM notifications WHERE id = ?", (notification_id,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error deleting notification: %s", e)
            raise DataAccessError("Failed to delete notification") from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Notification {notification_id} not found")
        logger.info("Notification %s deleted", notification_id)
