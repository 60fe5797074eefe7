"""
Pydantic models for users and admin messages.

``User`` is what the API returns and never carries the password.
``UserRecord`` adds the stored password hash and is only produced by
the lookup-by-email used by the login layer.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from .base import CamelModel


Gender = Literal["male", "female", "other", ""]


class User(CamelModel):
    """Schema for reading a user."""

    id: str
    email: str
    name: Optional[str] = None
    gender: Optional[Gender] = None
    age: Optional[int] = None
    state: Optional[str] = None
    mp_constituency: Optional[str] = None
    mla_constituency: Optional[str] = None
    panchayat: Optional[str] = None
    created_at: Optional[str] = None
    is_blocked: bool = False
    blocked_until: Optional[str] = None
    block_reason: Optional[str] = None
    # Filled in only by the admin listing.
    rating_count: Optional[int] = None
    leader_added_count: Optional[int] = None
    unread_message_count: Optional[int] = None


class UserRecord(User):
    """User together with the stored password hash."""

    password: Optional[str] = None


class UserCreate(CamelModel):
    """Schema for registering a user."""

    email: str = Field(..., examples=["voter@example.com"])
    password: Optional[str] = None
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class UserProfileUpdate(CamelModel):
    """Editable profile fields.

    Identity fields (id, email, password, creation time) are not part
    of this schema, so they are dropped from incoming payloads.  Empty
    strings clear a field; an age that is not a number clears the age.
    """

    name: Optional[str] = None
    gender: Optional[Gender] = None
    age: Optional[int] = None
    state: Optional[str] = None
    mp_constituency: Optional[str] = None
    mla_constituency: Optional[str] = None
    panchayat: Optional[str] = None

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            return None

    @field_validator("name", "gender", "state", "mp_constituency", "mla_constituency", "panchayat", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and v == "":
            return None
        return v


class BlockRequest(CamelModel):
    reason: str
    # ``None`` blocks indefinitely.
    blocked_until: Optional[datetime] = None


class AdminMessage(CamelModel):
    """A moderation message sent by an administrator to one user."""

    id: str
    user_id: str
    message: str
    is_read: bool = False
    created_at: str


class AdminMessageCreate(CamelModel):
    message: str = Field(..., min_length=1)
