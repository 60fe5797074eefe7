"""
Pydantic schemas for leaders, ratings and reviews.

A leader profile is submitted by a user (or an administrator), waits
in ``pending`` until moderated, and is listed publicly once
``approved``.  Ratings are one per user and leader; the leader keeps
the running average and count.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .base import CamelModel


LeaderStatus = Literal["pending", "approved", "rejected"]
LEADER_STATUSES = ("pending", "approved", "rejected")
ElectionType = Literal["national", "state", "panchayat"]


class LeaderLocation(CamelModel):
    state: Optional[str] = None
    district: Optional[str] = None


class PreviousElection(CamelModel):
    """One past contest listed on a leader profile."""

    election_type: str
    constituency: str
    status: Literal["winner", "loser"]
    election_year: str
    party_name: str


class LeaderBase(CamelModel):
    """Fields a submitter controls."""

    name: str = Field(..., min_length=1)
    party_name: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    age: Optional[int] = Field(None, ge=0)
    photo_url: Optional[str] = None
    constituency: Optional[str] = None
    native_address: Optional[str] = None
    election_type: Optional[ElectionType] = None
    location: LeaderLocation = Field(default_factory=LeaderLocation)
    previous_elections: List[PreviousElection] = Field(default_factory=list)
    manifesto_url: Optional[str] = None
    twitter_url: Optional[str] = None


class LeaderCreate(LeaderBase):
    """Payload for adding or editing a leader."""


class Leader(LeaderBase):
    """Schema for reading a leader."""

    id: str
    rating: float = 0
    review_count: int = 0
    added_by_user_id: Optional[str] = None
    created_at: Optional[str] = None
    status: LeaderStatus = "pending"
    admin_comment: Optional[str] = None
    # Submitter's display name, filled in by the admin listing.
    user_name: Optional[str] = None


class LeaderStatusUpdate(CamelModel):
    status: LeaderStatus
    admin_comment: Optional[str] = None


class AdminLeaderFilters(CamelModel):
    """Filters for the moderation table.

    The creation-date range applies only when both ends are given.
    """

    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    state: Optional[str] = None
    constituency: Optional[str] = None
    candidate_name: Optional[str] = None


class RatingSubmit(CamelModel):
    """Schema for rating a leader."""

    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Optional textual comment")
    social_behaviour: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def limit_comment(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 1000:
            raise ValueError("Comment must be 1000 characters or fewer")
        return v


class Review(CamelModel):
    user_name: str
    rating: int
    comment: Optional[str] = None
    updated_at: str
    social_behaviour: Optional[str] = None


class UserActivity(CamelModel):
    """A rating as shown on a user's activity feed."""

    leader_id: str
    leader_name: str
    leader_photo_url: str
    rating: int
    comment: Optional[str] = None
    updated_at: str
    leader: Leader
    social_behaviour: Optional[str] = None
    user_name: str


class RatingDistribution(CamelModel):
    rating: int
    count: int


class SocialBehaviourDistribution(CamelModel):
    name: str
    count: int
