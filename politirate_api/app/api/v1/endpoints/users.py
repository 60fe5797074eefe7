"""
API endpoints for users, their profiles and admin moderation.

Registration and profile editing act on behalf of the caller; listing,
blocking and admin messages are restricted to administrators.  A user
may read and acknowledge their own messages.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import get_current_user, require_admin, require_user
from politirate_api.app.schemas.filters import CountFilters
from politirate_api.app.schemas.leader import Leader, UserActivity
from politirate_api.app.schemas.user import (
    AdminMessage,
    AdminMessageCreate,
    BlockRequest,
    User,
    UserCreate,
    UserProfileUpdate,
)
from politirate_api.app.services.leader_service import LeaderService
from politirate_api.app.services.user_service import UserService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


def _ensure_self_or_admin(user_id: str, current_user: Dict[str, Any]) -> None:
    if current_user["is_admin"]:
        return
    if current_user["user_id"] is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    if current_user["user_id"] != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


@router.post("/", response_model=User, status_code=status.HTTP_201_CREATED, summary="Register a user")
async def register_user(data: UserCreate) -> User:
    if await UserService.find_user_by_email(data.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user = await UserService.add_user(data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to register user")
    return user


@router.get("/", response_model=List[User], summary="List users")
async def list_users(
    search: Optional[str] = Query(None, description="Substring of name, email or id"),
    current_user: dict = Depends(require_admin),
) -> List[User]:
    return await UserService.get_users(search)


@router.get("/count", response_model=int, summary="Count users")
async def count_users(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    state: Optional[str] = Query(None),
    constituency: Optional[str] = Query(None),
    current_user: dict = Depends(require_admin),
) -> int:
    return await UserService.get_user_count(
        CountFilters(start_date=start_date, end_date=end_date, state=state, constituency=constituency)
    )


@router.get("/{user_id}", response_model=User, summary="Get a user")
async def get_user(user_id: str, current_user: dict = Depends(get_current_user)) -> User:
    _ensure_self_or_admin(user_id, current_user)
    user = await UserService.find_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=User, summary="Update profile")
async def update_profile(
    user_id: str,
    data: UserProfileUpdate,
    current_user: dict = Depends(get_current_user),
) -> User:
    """Update the caller's own profile; only fields sent are changed."""
    _ensure_self_or_admin(user_id, current_user)
    user = await UserService.update_user_profile(user_id, data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/{user_id}/activities", response_model=List[UserActivity], summary="Ratings given by a user")
async def user_activities(user_id: str, current_user: dict = Depends(get_current_user)) -> List[UserActivity]:
    _ensure_self_or_admin(user_id, current_user)
    return await LeaderService.get_activities_for_user(user_id)


@router.get("/{user_id}/leaders", response_model=List[Leader], summary="Leaders submitted by a user")
async def user_leaders(user_id: str, current_user: dict = Depends(get_current_user)) -> List[Leader]:
    _ensure_self_or_admin(user_id, current_user)
    return await LeaderService.get_leaders_added_by_user(user_id)


@router.post("/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT, summary="Block a user")
async def block_user(
    user_id: str,
    data: BlockRequest,
    current_user: dict = Depends(require_admin),
) -> None:
    try:
        await UserService.block_user(user_id, data.reason, data.blocked_until)
    except PolitirateError as e:
        raise http_error(e)


@router.post("/{user_id}/unblock", status_code=status.HTTP_204_NO_CONTENT, summary="Unblock a user")
async def unblock_user(user_id: str, current_user: dict = Depends(require_admin)) -> None:
    try:
        await UserService.unblock_user(user_id)
    except PolitirateError as e:
        raise http_error(e)


@router.post(
    "/{user_id}/messages",
    response_model=AdminMessage,
    status_code=status.HTTP_201_CREATED,
    summary="Send an admin message",
)
async def send_admin_message(
    user_id: str,
    data: AdminMessageCreate,
    current_user: dict = Depends(require_admin),
) -> AdminMessage:
    try:
        return await UserService.add_admin_message(user_id, data.message)
    except PolitirateError as e:
        raise http_error(e)


@router.get("/{user_id}/messages", response_model=List[AdminMessage], summary="List admin messages")
async def list_admin_messages(
    user_id: str,
    unread: bool = Query(False, description="Only unread messages, oldest first"),
    current_user: dict = Depends(get_current_user),
) -> List[AdminMessage]:
    _ensure_self_or_admin(user_id, current_user)
    if unread:
        return await UserService.get_unread_messages(user_id)
    return await UserService.get_admin_messages(user_id)


@router.post(
    "/messages/{message_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark an admin message as read",
)
async def mark_message_read(message_id: str, current_user: dict = Depends(require_user)) -> None:
    """Acknowledge a message addressed to the caller."""
    message = await UserService.get_admin_message(message_id)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    _ensure_self_or_admin(message.user_id, current_user)
    try:
        await UserService.mark_message_as_read(message_id)
    except PolitirateError as e:
        raise http_error(e)


@router.delete(
    "/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an admin message",
)
async def delete_message(message_id: str, current_user: dict = Depends(require_admin)) -> None:
    try:
        await UserService.delete_admin_message(message_id)
    except PolitirateError as e:
        raise http_error(e)
