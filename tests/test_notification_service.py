"""Tests for NotificationService."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PayloadError

from politirate_api.app.core.exceptions import NotFoundError
from politirate_api.app.schemas.notification import NotificationPayload
from politirate_api.app.services.notification_service import NotificationService


def _now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_add_and_list(db):
    created = await NotificationService.add_notification(
        NotificationPayload(message="Election results tonight", link="https://example.org/results")
    )
    assert created.is_active
    listed = await NotificationService.get_notifications()
    assert [n.id for n in listed] == [created.id]
    assert listed[0].link == "https://example.org/results"


@pytest.mark.asyncio
async def test_active_window(db):
    await NotificationService.add_notification(NotificationPayload(message="Always on"))
    await NotificationService.add_notification(
        NotificationPayload(message="Disabled", is_active=False)
    )
    await NotificationService.add_notification(
        NotificationPayload(message="Future", start_time=_now() + timedelta(hours=1))
    )
    await NotificationService.add_notification(
        NotificationPayload(
            message="Past",
            start_time=_now() - timedelta(days=2),
            end_time=_now() - timedelta(days=1),
        )
    )
    await NotificationService.add_notification(
        NotificationPayload(
            message="Current",
            start_time=_now() - timedelta(hours=1),
            end_time=_now() + timedelta(hours=1),
        )
    )
    active = {n.message for n in await NotificationService.get_active_notifications()}
    assert active == {"Always on", "Current"}


def test_window_must_be_ordered():
    with pytest.raises(PayloadError):
        NotificationPayload(
            message="Backwards",
            start_time=datetime(2030, 1, 2),
            end_time=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )


@pytest.mark.asyncio
async def test_update_notification(db):
    created = await NotificationService.add_notification(NotificationPayload(message="Draft"))
    updated = await NotificationService.update_notification(
        created.id,
        NotificationPayload(message="Final", is_active=False, end_time=datetime(2030, 1, 1)),
    )
    assert updated.message == "Final"
    assert not updated.is_active
    assert updated.end_time == "2030-01-01T00:00:00+00:00"
    assert updated.created_at == created.created_at


@pytest.mark.asyncio
async def test_update_and_delete_missing(db):
    with pytest.raises(NotFoundError):
        await NotificationService.update_notification("missing", NotificationPayload(message="x"))
    with pytest.raises(NotFoundError):
        await NotificationService.delete_notification("missing")


@pytest.mark.asyncio
async def test_delete(db):
    created = await NotificationService.add_notification(NotificationPayload(message="Bye"))
    await NotificationService.delete_notification(created.id)
    assert await NotificationService.get_notifications() == []


@pytest.mark.asyncio
async def test_reads_fall_back_when_tables_missing(unmigrated_db):
    assert await NotificationService.get_notifications() == []
    assert await NotificationService.get_active_notifications() == []
