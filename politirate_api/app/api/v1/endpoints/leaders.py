"""
API endpoints for leader profiles.

Anyone can browse approved leaders and their reviews.  Signed-in users
submit new leaders and edit the ones they submitted; administrators
moderate submissions and see every leader regardless of status.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import get_current_user, require_admin, require_user
from politirate_api.app.schemas.filters import CountFilters
from politirate_api.app.schemas.leader import (
    AdminLeaderFilters,
    Leader,
    LeaderCreate,
    LeaderStatusUpdate,
    RatingDistribution,
    Review,
    SocialBehaviourDistribution,
    UserActivity,
)
from politirate_api.app.services.leader_service import LeaderService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.get("/", response_model=List[Leader], summary="List approved leaders")
async def list_leaders() -> List[Leader]:
    return await LeaderService.get_leaders()


@router.post("/", response_model=Leader, status_code=status.HTTP_201_CREATED, summary="Submit a leader")
async def add_leader(data: LeaderCreate, current_user: dict = Depends(require_user)) -> Leader:
    """Submit a leader profile; it stays pending until an admin approves it."""
    try:
        return await LeaderService.add_leader(data, current_user["user_id"])
    except PolitirateError as e:
        raise http_error(e)


@router.get("/count", response_model=int, summary="Count leaders")
async def count_leaders(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    state: Optional[str] = Query(None),
    constituency: Optional[str] = Query(None),
    current_user: dict = Depends(require_admin),
) -> int:
    return await LeaderService.get_leader_count(
        CountFilters(start_date=start_date, end_date=end_date, state=state, constituency=constituency)
    )


@router.get("/admin", response_model=List[Leader], summary="All leaders for moderation")
async def admin_leaders(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    state: Optional[str] = Query(None),
    constituency: Optional[str] = Query(None),
    candidate_name: Optional[str] = Query(None),
    current_user: dict = Depends(require_admin),
) -> List[Leader]:
    filters = AdminLeaderFilters(
        date_from=date_from,
        date_to=date_to,
        state=state,
        constituency=constituency,
        candidate_name=candidate_name,
    )
    return await LeaderService.get_leaders_for_admin_panel(filters)


@router.get("/{leader_id}", response_model=Leader, summary="Get a leader")
async def get_leader(leader_id: str) -> Leader:
    leader = await LeaderService.get_leader_by_id(leader_id)
    if leader is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leader not found.")
    return leader


@router.put("/{leader_id}", response_model=Leader, summary="Edit a leader")
async def update_leader(
    leader_id: str,
    data: LeaderCreate,
    current_user: dict = Depends(get_current_user),
) -> Leader:
    """Only the submitter or an administrator may edit a leader."""
    try:
        return await LeaderService.update_leader(
            leader_id, data, current_user["user_id"], current_user["is_admin"]
        )
    except PolitirateError as e:
        raise http_error(e)


@router.delete("/{leader_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a leader")
async def delete_leader(leader_id: str, current_user: dict = Depends(require_admin)) -> None:
    try:
        await LeaderService.delete_leader(leader_id)
    except PolitirateError as e:
        raise http_error(e)


@router.post("/{leader_id}/approve", status_code=status.HTTP_204_NO_CONTENT, summary="Approve a leader")
async def approve_leader(leader_id: str, current_user: dict = Depends(require_admin)) -> None:
    try:
        await LeaderService.approve_leader(leader_id)
    except PolitirateError as e:
        raise http_error(e)


@router.put("/{leader_id}/status", status_code=status.HTTP_204_NO_CONTENT, summary="Set moderation status")
async def update_leader_status(
    leader_id: str,
    data: LeaderStatusUpdate,
    current_user: dict = Depends(require_admin),
) -> None:
    try:
        await LeaderService.update_leader_status(leader_id, data.status, data.admin_comment)
    except PolitirateError as e:
        raise http_error(e)


@router.get("/{leader_id}/reviews", response_model=List[Review], summary="Reviews of a leader")
async def leader_reviews(leader_id: str) -> List[Review]:
    return await LeaderService.get_reviews_for_leader(leader_id)


@router.get(
    "/{leader_id}/rating-distribution",
    response_model=List[RatingDistribution],
    summary="Rating histogram",
)
async def rating_distribution(leader_id: str) -> List[RatingDistribution]:
    return await LeaderService.get_rating_distribution(leader_id)


@router.get(
    "/{leader_id}/social-behaviour",
    response_model=List[SocialBehaviourDistribution],
    summary="Social behaviour tag counts",
)
async def social_behaviour(leader_id: str) -> List[SocialBehaviourDistribution]:
    return await LeaderService.get_social_behaviour_distribution(leader_id)


@router.get("/activities/all", response_model=List[UserActivity], summary="Every rating, newest first")
async def all_activities(current_user: dict = Depends(require_admin)) -> List[UserActivity]:
    return await LeaderService.get_all_activities()
