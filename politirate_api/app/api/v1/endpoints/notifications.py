"""
API endpoints for site notification banners.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import require_admin
from politirate_api.app.schemas.notification import NotificationPayload, SiteNotification
from politirate_api.app.services.notification_service import NotificationService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.get("/active", response_model=List[SiteNotification], summary="Banners to show now")
async def active_notifications() -> List[SiteNotification]:
    return await NotificationService.get_active_notifications()


@router.get("/", response_model=List[SiteNotification], summary="List notifications")
async def list_notifications(current_user: dict = Depends(require_admin)) -> List[SiteNotification]:
    return await NotificationService.get_notifications()


@router.post(
    "/",
    response_model=SiteNotification,
    status_code=status.HTTP_201_CREATED,
    summary="Create a notification",
)
async def create_notification(
    data: NotificationPayload,
    current_user: dict = Depends(require_admin),
) -> SiteNotification:
    try:
        return await NotificationService.add_notification(data)
    except PolitirateError as e:
        raise http_error(e)


@router.put("/{notification_id}", response_model=SiteNotification, summary="Update a notification")
async def update_notification(
    notification_id: str,
    data: NotificationPayload,
    current_user: dict = Depends(require_admin),
) -> SiteNotification:
    try:
        return await NotificationService.update_notification(notification_id, data)
    except PolitirateError as e:
        raise http_error(e)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: str,
    current_user: dict = Depends(require_admin),
) -> None:
    try:
        await NotificationService.delete_notification(notification_id)
    except PolitirateError as e:
        raise http_error(e)
