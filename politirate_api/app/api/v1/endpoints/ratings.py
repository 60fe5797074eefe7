"""
API endpoints for rating leaders.

A user has at most one rating per leader; posting again replaces it.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import require_admin, require_user
from politirate_api.app.schemas.filters import CountFilters
from politirate_api.app.schemas.leader import Leader, RatingSubmit
from politirate_api.app.services.leader_service import LeaderService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.put("/{leader_id}", response_model=Leader, summary="Rate a leader")
async def submit_rating(
    leader_id: str,
    data: RatingSubmit,
    current_user: dict = Depends(require_user),
) -> Leader:
    """Record the caller's rating and optional comment; returns the updated leader."""
    try:
        return await LeaderService.submit_rating_and_comment(
            leader_id,
            current_user["user_id"],
            data.rating,
            data.comment,
            data.social_behaviour,
        )
    except PolitirateError as e:
        raise http_error(e)


@router.delete("/{leader_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Withdraw a rating")
async def delete_rating(leader_id: str, current_user: dict = Depends(require_user)) -> None:
    try:
        await LeaderService.delete_rating(current_user["user_id"], leader_id)
    except PolitirateError as e:
        raise http_error(e)


@router.get("/count", response_model=int, summary="Count ratings")
async def count_ratings(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    state: Optional[str] = Query(None),
    constituency: Optional[str] = Query(None),
    current_user: dict = Depends(require_admin),
) -> int:
    return await LeaderService.get_rating_count(
        CountFilters(start_date=start_date, end_date=end_date, state=state, constituency=constituency)
    )
