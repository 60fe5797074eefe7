"""Tests for SettingsService and the maintenance window."""

from datetime import datetime, timezone

import pytest

from politirate_api.app.schemas.settings import DEFAULT_SETTINGS, SiteSettingsUpdate
from politirate_api.app.services.settings_service import SettingsService

START = datetime(2030, 3, 1, 22, 0, tzinfo=timezone.utc)
END = datetime(2030, 3, 2, 2, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_defaults_when_nothing_stored(db):
    current = await SettingsService.get_settings()
    assert current == DEFAULT_SETTINGS
    assert current.maintenance_active == "false"
    assert current.contact_email == "support@politirate.com"
    assert current.contact_phone is None


@pytest.mark.asyncio
async def test_update_merges_over_defaults(db):
    updated = await SettingsService.update_settings(
        SiteSettingsUpdate(contact_phone="+91 80 1234 5678", maintenance_active=True)
    )
    assert updated.contact_phone == "+91 80 1234 5678"
    assert updated.maintenance_active == "true"
    assert updated.contact_email == "support@politirate.com"


@pytest.mark.asyncio
async def test_none_clears_a_setting(db):
    await SettingsService.update_settings({"contact_email": "help@example.org"})
    cleared = await SettingsService.update_settings({"contact_email": None})
    assert cleared.contact_email is None


@pytest.mark.asyncio
async def test_maintenance_off_by_default(db):
    assert not await SettingsService.is_maintenance_active()


@pytest.mark.asyncio
async def test_maintenance_window_boundaries(db):
    await SettingsService.update_settings(
        SiteSettingsUpdate(maintenance_active="true", maintenance_start=START, maintenance_end=END)
    )
    assert not await SettingsService.is_maintenance_active(datetime(2030, 3, 1, 21, 59, tzinfo=timezone.utc))
    assert await SettingsService.is_maintenance_active(START)
    assert await SettingsService.is_maintenance_active(datetime(2030, 3, 2, 0, 0, tzinfo=timezone.utc))
    assert await SettingsService.is_maintenance_active(END)
    assert not await SettingsService.is_maintenance_active(datetime(2030, 3, 2, 2, 1, tzinfo=timezone.utc))


@pytest.mark.asyncio
async def test_open_ended_window(db):
    await SettingsService.update_settings(
        SiteSettingsUpdate(maintenance_active="true", maintenance_start=START)
    )
    assert await SettingsService.is_maintenance_active(datetime(2040, 1, 1, tzinfo=timezone.utc))
    assert not await SettingsService.is_maintenance_active(datetime(2029, 1, 1, tzinfo=timezone.utc))


@pytest.mark.asyncio
async def test_flag_off_ignores_window(db):
    await SettingsService.update_settings(
        SiteSettingsUpdate(maintenance_active="false", maintenance_start=START, maintenance_end=END)
    )
    assert not await SettingsService.is_maintenance_active(START)


@pytest.mark.asyncio
async def test_maintenance_status_carries_message(db):
    await SettingsService.update_settings(SiteSettingsUpdate(maintenance_active="true"))
    status = await SettingsService.get_maintenance_status()
    assert status.active
    assert status.message == DEFAULT_SETTINGS.maintenance_message


@pytest.mark.asyncio
async def test_defaults_when_table_missing(unmigrated_db):
    assert await SettingsService.get_settings() == DEFAULT_SETTINGS
    assert not await SettingsService.is_maintenance_active()
