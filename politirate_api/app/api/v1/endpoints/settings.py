"""
API endpoints for site settings and the maintenance window.

Reading settings and the maintenance status is public so the web tier
can render the maintenance page and contact details; writes are
admin-only.
"""

from fastapi import APIRouter, Depends

from politirate_api.app.core.exceptions import PolitirateError
from politirate_api.app.core.security import require_admin
from politirate_api.app.schemas.settings import MaintenanceStatus, SiteSettings, SiteSettingsUpdate
from politirate_api.app.services.settings_service import SettingsService
from politirate_api.app.api.v1.errors import http_error

router = APIRouter()


@router.get("/", response_model=SiteSettings, summary="Current settings")
async def get_settings() -> SiteSettings:
    return await SettingsService.get_settings()


@router.put("/", response_model=SiteSettings, summary="Update settings")
async def update_settings(
    data: SiteSettingsUpdate,
    current_user: dict = Depends(require_admin),
) -> SiteSettings:
    """Write the keys present in the body; ``null`` clears a key."""
    try:
        return await SettingsService.update_settings(data)
    except PolitirateError as e:
        raise http_error(e)


@router.get("/maintenance", response_model=MaintenanceStatus, summary="Is the site in maintenance")
async def maintenance_status() -> MaintenanceStatus:
    return await SettingsService.get_maintenance_status()
