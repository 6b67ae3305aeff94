"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from lib.config import BotOptions
from lib.graph import ApplicationToken, GraphClient
from lib.user_storage import UserStorageProvider
from models import User, UserRole

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

USER_IDS = [
    "6f1c2a4e-0b7d-4d62-9a57-1e3c9f0a2b11",
    "b2d94f8c-3e6a-4a1f-8c25-7f0e1d9b4c22",
    "0a8e7d36-5c4b-4f29-b1e3-9d2c6a7f8e33",
]


@pytest.fixture
def now():
    """Fixed sweep time."""
    return NOW


@pytest.fixture
def make_user():
    """Build a user installed `days_ago` days before NOW."""

    def _make(user_id, days_ago, role=UserRole.NEW_HIRE):
        installed = None if days_ago is None else NOW - timedelta(days=days_ago)
        return User(
            aad_object_id=user_id,
            user_role=int(role),
            bot_installed_on=installed,
        )

    return _make


@pytest.fixture
def bot_options():
    """Bot credentials."""
    return BotOptions(
        tenant_id="tenant-1",
        microsoft_app_id="app-1",
        microsoft_app_password="secret",
        manifest_id="manifest-1",
    )


@pytest.fixture
def mock_graph():
    """Mock Graph client that always succeeds."""
    mock = AsyncMock(spec=GraphClient)
    mock.obtain_application_token.return_value = ApplicationToken(access_token="token")
    mock.get_installed_app_id.side_effect = lambda token, user_id: f"app-{user_id}"
    mock.remove_app_from_user_scope.return_value = None
    return mock


@pytest.fixture
def mock_storage():
    """Mock user store with no users."""
    mock = AsyncMock(spec=UserStorageProvider)
    mock.get_all_users.return_value = []
    mock.delete_users_batch.side_effect = lambda users: len(users)
    return mock
