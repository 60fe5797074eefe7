"""
API endpoints for polls.

Active polls and results are public.  Responding requires a user and
is allowed once per poll; creating and managing polls is admin-only.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import require_admin, require_user
from politirate_api.app.schemas.poll import (
    Poll,
    PollCreate,
    PollResponseSubmit,
    PollResult,
    PollStatusUpdate,
)
from politirate_api.app.services.poll_service import PollService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.get("/", response_model=List[Poll], summary="List active polls")
async def list_active_polls() -> List[Poll]:
    return await PollService.get_active_polls()


@router.get("/all", response_model=List[Poll], summary="List every poll")
async def list_all_polls(current_user: dict = Depends(require_admin)) -> List[Poll]:
    return await PollService.get_all_polls()


@router.post("/", status_code=status.HTTP_201_CREATED, summary="Create a poll")
async def create_poll(data: PollCreate, current_user: dict = Depends(require_admin)) -> dict:
    try:
        poll_id = await PollService.create_poll(data)
    except PolitirateError as e:
        raise http_error(e)
    return {"id": poll_id}


@router.get("/{poll_id}", response_model=Poll, summary="Get a poll")
async def get_poll(poll_id: str) -> Poll:
    poll = await PollService.get_poll_by_id(poll_id)
    if poll is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Poll not found")
    return poll


@router.put("/{poll_id}/status", status_code=status.HTTP_204_NO_CONTENT, summary="Open or close a poll")
async def update_poll_status(
    poll_id: str,
    data: PollStatusUpdate,
    current_user: dict = Depends(require_admin),
) -> None:
    try:
        await PollService.update_poll_status(poll_id, data.is_active, data.active_until)
    except PolitirateError as e:
        raise http_error(e)


@router.delete("/{poll_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a poll")
async def delete_poll(poll_id: str, current_user: dict = Depends(require_admin)) -> None:
    try:
        await PollService.delete_poll(poll_id)
    except PolitirateError as e:
        raise http_error(e)


@router.post("/{poll_id}/responses", status_code=status.HTTP_201_CREATED, summary="Answer a poll")
async def submit_response(
    poll_id: str,
    data: PollResponseSubmit,
    current_user: dict = Depends(require_user),
) -> dict:
    try:
        response_id = await PollService.submit_poll_response(
            poll_id, current_user["user_id"], data.answers
        )
    except PolitirateError as e:
        raise http_error(e)
    return {"id": response_id}


@router.get("/{poll_id}/responded", response_model=bool, summary="Has the caller answered")
async def has_responded(poll_id: str, current_user: dict = Depends(require_user)) -> bool:
    return await PollService.has_user_responded_to_poll(poll_id, current_user["user_id"])


@router.get("/{poll_id}/results", response_model=List[PollResult], summary="Poll results")
async def poll_results(poll_id: str) -> List[PollResult]:
    return await PollService.get_poll_results(poll_id)
