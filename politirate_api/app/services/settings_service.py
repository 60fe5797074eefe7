"""
Service layer for site settings.

Settings live in the ``site_settings`` table as key/value strings.
``get_settings`` overlays whatever is stored on ``DEFAULT_SETTINGS`` so
callers always receive every known key.  Date values are normalised to
UTC ISO strings on write, which lets the maintenance window check
compare them as plain strings.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Optional, Union

from politirate_api.app.core.db import get_connection, to_timestamp, utc_now_iso
from politirate_api.app.core.exceptions import DataAccessError
from ..schemas.settings import (
    DEFAULT_SETTINGS,
    SETTING_KEYS,
    MaintenanceStatus,
    SiteSettings,
    SiteSettingsUpdate,
)

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for reading and writing site settings."""

    @classmethod
    async def get_settings(cls) -> SiteSettings:
        """Return stored settings merged over the defaults.

        Falls back to the defaults if the table cannot be read.
        """
        conn = get_connection()
        try:
            rows = conn.execute("SELECT key, value FROM site_settings").fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching settings: %s", e)
            return DEFAULT_SETTINGS.model_copy()
        finally:
            conn.close()

        merged = DEFAULT_SETTINGS.model_dump()
        for row in rows:
            if row["key"] in SETTING_KEYS:
                merged[row["key"]] = row["value"]
        if merged["maintenance_active"] not in ("true", "false"):
            merged["maintenance_active"] = "false"
        return SiteSettings(**merged)

    @classmethod
    async def update_settings(cls, values: Union[SiteSettingsUpdate, Dict[str, Any]]) -> SiteSettings:
        """Upsert each key present in ``values``.

        ``None`` clears a setting (stored as NULL); datetimes are stored
        in UTC.  Keys are written one by one and the first failure
        raises with the offending key in the message.
        """
        if isinstance(values, SiteSettingsUpdate):
            values = values.model_dump(exclude_unset=True)
        conn = get_connection()
        try:
            for key, value in values.items():
                try:
                    conn.execute(
                        "INSERT INTO site_settings (key, value) VALUES (?, ?)"
                        " ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                        (key, cls._serialize(value)),
                    )
                    conn.commit()
                except sqlite3.Error as e:
                    conn.rollback()
                    logger.error("Error updating setting %s: %s", key, e)
                    raise DataAccessError(f"Failed to update setting: {key}") from e
                logger.info("Setting %s updated", key)
        finally:
            conn.close()
        return await cls.get_settings()

    @classmethod
    async def is_maintenance_active(cls, now: Union[datetime, str, None] = None) -> bool:
        """True when the maintenance flag is on and ``now`` is inside the window.

        Either end of the window may be unset, in which case that side is
        open.
        """
        current = await cls.get_settings()
        if current.maintenance_active != "true":
            return False
        moment = to_timestamp(now) if now is not None else utc_now_iso()
        start = cls._bound(current.maintenance_start)
        end = cls._bound(current.maintenance_end)
        if start and moment < start:
            return False
        if end and moment > end:
            return False
        return True

    @classmethod
    async def get_maintenance_status(cls, now: Union[datetime, str, None] = None) -> MaintenanceStatus:
        active = await cls.is_maintenance_active(now)
        message = (await cls.get_settings()).maintenance_message if active else None
        return MaintenanceStatus(active=active, message=message)

    @staticmethod
    def _serialize(value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return to_timestamp(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @staticmethod
    def _bound(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            return to_timestamp(value)
        except ValueError:
            logger.error("Ignoring malformed maintenance bound %r", value)
            return None
