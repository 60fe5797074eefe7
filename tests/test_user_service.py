"""Tests for UserService."""

from datetime import datetime, timezone

import pytest

from politirate_api.app.core.exceptions import NotFoundError
from politirate_api.app.core.security import verify_password
from politirate_api.app.schemas.filters import CountFilters
from politirate_api.app.schemas.user import UserCreate, UserProfileUpdate
from politirate_api.app.services.user_service import UserService


@pytest.mark.asyncio
async def test_add_user_normalises_email_and_name(create_user):
    user = await create_user(email="  Voter@Example.COM ", name="meera")
    assert user.email == "voter@example.com"
    assert user.name == "Meera"
    assert not user.is_blocked


@pytest.mark.asyncio
async def test_add_user_defaults_name_to_email_local_part(create_user):
    user = await create_user(email="ravi.k@example.com")
    assert user.name == "Ravi.k"


@pytest.mark.asyncio
async def test_password_is_stored_hashed(create_user):
    await create_user(email="hash@example.com", password="pa55word")
    record = await UserService.find_user_by_email("HASH@example.com")
    assert record.password != "pa55word"
    assert verify_password("pa55word", record.password)


@pytest.mark.asyncio
async def test_duplicate_email_returns_none(create_user):
    assert await create_user(email="dup@example.com") is not None
    assert await UserService.add_user(UserCreate(email="DUP@example.com")) is None


@pytest.mark.asyncio
async def test_find_user_by_id_unknown(db):
    assert await UserService.find_user_by_id("missing") is None


@pytest.mark.asyncio
async def test_update_profile_only_touches_sent_fields(create_user):
    user = await create_user()
    await UserService.update_user_profile(
        user.id, UserProfileUpdate(state="Kerala", mp_constituency="Thrissur", age="41")
    )
    updated = await UserService.update_user_profile(
        user.id, UserProfileUpdate(mla_constituency="Ollur", age="unknown")
    )
    assert updated.state == "Kerala"
    assert updated.mp_constituency == "Thrissur"
    assert updated.mla_constituency == "Ollur"
    assert updated.age is None


@pytest.mark.asyncio
async def test_blank_profile_fields_are_cleared(create_user):
    user = await create_user()
    await UserService.update_user_profile(user.id, UserProfileUpdate(panchayat="Mala"))
    updated = await UserService.update_user_profile(user.id, UserProfileUpdate(panchayat=""))
    assert updated.panchayat is None


@pytest.mark.asyncio
async def test_get_users_search_and_counters(create_user):
    first = await create_user(email="anita@example.com", name="Anita")
    await create_user(email="bose@example.com", name="Bose")
    await UserService.add_admin_message(first.id, "Please keep reviews civil")

    everyone = await UserService.get_users()
    assert {u.email for u in everyone} == {"anita@example.com", "bose@example.com"}

    found = await UserService.get_users("ANI")
    assert [u.id for u in found] == [first.id]
    assert found[0].unread_message_count == 1
    assert found[0].rating_count == 0
    assert found[0].leader_added_count == 0


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(create_user):
    await create_user(email="plain@example.com", name="Plain")
    assert await UserService.get_users("%") == []


@pytest.mark.asyncio
async def test_user_count_filters(create_user):
    a = await create_user(email="a@example.com")
    await create_user(email="b@example.com")
    await UserService.update_user_profile(
        a.id, UserProfileUpdate(state="Goa", mla_constituency="Panaji North")
    )
    assert await UserService.get_user_count() == 2
    assert await UserService.get_user_count(CountFilters(state="Goa")) == 1
    assert await UserService.get_user_count(CountFilters(constituency="panaji")) == 1
    future = CountFilters(
        start_date=datetime(2100, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2100, 12, 31, tzinfo=timezone.utc),
    )
    assert await UserService.get_user_count(future) == 0


@pytest.mark.asyncio
async def test_block_and_unblock(create_user):
    user = await create_user()
    await UserService.block_user(user.id, "Spam", datetime(2030, 5, 1, 12, 0))
    blocked = await UserService.find_user_by_id(user.id)
    assert blocked.is_blocked
    assert blocked.block_reason == "Spam"
    assert blocked.blocked_until == "2030-05-01T12:00:00+00:00"

    await UserService.unblock_user(user.id)
    unblocked = await UserService.find_user_by_id(user.id)
    assert not unblocked.is_blocked
    assert unblocked.block_reason is None
    assert unblocked.blocked_until is None


@pytest.mark.asyncio
async def test_block_unknown_user(db):
    with pytest.raises(NotFoundError):
        await UserService.block_user("missing", "Spam")


@pytest.mark.asyncio
async def test_admin_messages_lifecycle(create_user):
    user = await create_user()
    first = await UserService.add_admin_message(user.id, "First")
    second = await UserService.add_admin_message(user.id, "Second")

    unread = await UserService.get_unread_messages(user.id)
    assert {m.id for m in unread} == {first.id, second.id}

    await UserService.mark_message_as_read(first.id)
    assert [m.id for m in await UserService.get_unread_messages(user.id)] == [second.id]
    assert len(await UserService.get_admin_messages(user.id)) == 2

    await UserService.delete_admin_message(second.id)
    remaining = await UserService.get_admin_messages(user.id)
    assert [m.id for m in remaining] == [first.id]
    assert remaining[0].is_read


@pytest.mark.asyncio
async def test_get_admin_message(create_user):
    user = await create_user()
    sent = await UserService.add_admin_message(user.id, "Check your profile")
    found = await UserService.get_admin_message(sent.id)
    assert found.user_id == user.id
    assert found.message == "Check your profile"
    assert not found.is_read
    assert await UserService.get_admin_message("missing") is None


@pytest.mark.asyncio
async def test_message_for_unknown_user(db):
    with pytest.raises(NotFoundError):
        await UserService.add_admin_message("missing", "Hello")


@pytest.mark.asyncio
async def test_mark_unknown_message(db):
    with pytest.raises(NotFoundError):
        await UserService.mark_message_as_read("missing")


@pytest.mark.asyncio
async def test_reads_fall_back_when_tables_missing(unmigrated_db):
    assert await UserService.get_users() == []
    assert await UserService.find_user_by_id("x") is None
    assert await UserService.get_user_count() == 0
    assert await UserService.get_admin_messages("x") == []
    assert await UserService.get_admin_message("x") is None
