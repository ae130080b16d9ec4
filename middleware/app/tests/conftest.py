"""
Shared fixtures for the auth facade tests.

Provider settings are seeded into the environment before the application is
imported, and every test starts with a fresh settings cache.
"""

import os
from unittest.mock import AsyncMock, patch

import pytest

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("APP_URL", "https://app.example.org")

from app.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Reload settings from the environment for every test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_identity_client():
    """
    Identity client stand-in returned by create_client() inside the actions.

    Every provider operation is an AsyncMock that succeeds by default.
    """
    client = AsyncMock()
    client.sign_up.return_value = {"id": "user-123", "email": "new.user@mail.com"}
    client.sign_in_with_password.return_value = {
        "access_token": "access-token-abc",
        "refresh_token": "refresh-token-xyz",
        "expires_in": 3600,
        "token_type": "bearer",
        "user": {"id": "user-123", "email": "a@b.com"},
    }
    client.sign_in_with_oauth.return_value = {
        "provider": "github",
        "url": "https://test-project.supabase.co/auth/v1/authorize?provider=github",
    }
    client.reset_password_for_email.return_value = {}
    client.update_user.return_value = {"id": "user-123"}
    client.sign_out.return_value = None
    client.get_user.return_value = None
    return client


@pytest.fixture
def create_client_mock(mock_identity_client):
    """Patch the client factory used by the actions"""
    with patch("app.auth.actions.create_client", return_value=mock_identity_client) as factory:
        yield factory
