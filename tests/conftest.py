"""Test configuration.

Every test that touches the database gets its own SQLite file under
``tmp_path`` with all migrations applied.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from politirate_api.app.core.config import settings
from politirate_api.app.core.db import init_db
from politirate_api.app.schemas.leader import LeaderCreate
from politirate_api.app.schemas.user import UserCreate
from politirate_api.app.services.leader_service import LeaderService
from politirate_api.app.services.user_service import UserService

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the services at a fresh, migrated database."""
    path = tmp_path / "politirate-test.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    init_db()
    return path


@pytest.fixture
def unmigrated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A database file with no tables, so every query fails."""
    path = tmp_path / "empty.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    return path


@pytest.fixture
def admin_token(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "admin_token", ADMIN_TOKEN)
    return ADMIN_TOKEN


@pytest.fixture
def client(db: Path, admin_token: str) -> Generator[TestClient, None, None]:
    from politirate_api.app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def create_user(db: Path):
    """Factory registering a user through the service."""

    async def _create(email: str = "voter@example.com", name=None, password="secret"):
        return await UserService.add_user(UserCreate(email=email, password=password, name=name))

    return _create


@pytest.fixture
def create_leader(db: Path):
    """Factory submitting a leader, optionally approving it."""

    async def _create(name: str = "Asha Rao", user_id=None, approve: bool = False, **fields):
        leader = await LeaderService.add_leader(LeaderCreate(name=name, **fields), user_id)
        if approve:
            await LeaderService.approve_leader(leader.id)
            leader = await LeaderService.get_leader_by_id(leader.id)
        return leader

    return _create
