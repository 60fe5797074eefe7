"""
Pydantic schemas for site settings.

Settings are stored as key/value rows, so the field names here are the
stored keys and stay in snake_case on the wire.  ``maintenance_active``
is kept as the string ``"true"``/``"false"`` exactly as stored.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator


class SiteSettings(BaseModel):
    maintenance_active: Literal["true", "false"] = "false"
    maintenance_start: Optional[str] = None
    maintenance_end: Optional[str] = None
    maintenance_message: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_twitter: Optional[str] = None
    contact_linkedin: Optional[str] = None
    contact_youtube: Optional[str] = None
    contact_facebook: Optional[str] = None


class SiteSettingsUpdate(BaseModel):
    """Partial update; only keys present in the payload are written."""

    maintenance_active: Optional[Literal["true", "false"]] = None
    maintenance_start: Optional[datetime] = None
    maintenance_end: Optional[datetime] = None
    maintenance_message: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_twitter: Optional[str] = None
    contact_linkedin: Optional[str] = None
    contact_youtube: Optional[str] = None
    contact_facebook: Optional[str] = None

    @field_validator("maintenance_active", mode="before")
    @classmethod
    def bool_to_flag(cls, v):
        if isinstance(v, bool):
            return "true" if v else "false"
        return v


class MaintenanceStatus(BaseModel):
    active: bool
    message: Optional[str] = None


DEFAULT_SETTINGS = SiteSettings(
    maintenance_active="false",
    maintenance_message="The site is currently down for maintenance. We will be back shortly.",
    contact_email="support@politirate.com",
)

SETTING_KEYS = tuple(SiteSettings.model_fields)
