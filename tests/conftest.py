"""Shared pytest fixtures for workspace-mcp tests.

This module provides reusable fixtures for settings, token records, an
in-memory Redis double for the token store, and Google API response mocks.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from workspace_mcp.auth.models import TokenRecord, now_epoch
from workspace_mcp.config import Settings

TEST_SCOPES = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/drive",
)

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Create settings with a configured default session."""
    return Settings(
        google_client_id="test-client-id.apps.googleusercontent.com",
        google_client_secret="test-client-secret",  # pragma: allowlist secret
        google_redirect_uri="http://127.0.0.1:3000/auth/callback",
        google_scopes=TEST_SCOPES,
        redis_url="redis://localhost:6379/0",
        default_session_id="default-session",
    )


@pytest.fixture
def settings_without_default(settings: Settings) -> Settings:
    """Create settings with no default session configured."""
    return settings.model_copy(update={"default_session_id": None})


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_record() -> TokenRecord:
    """Create a valid, non-expired token record."""
    return TokenRecord(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=now_epoch() + 3600,
        scope=" ".join(TEST_SCOPES),
        token_type="Bearer",
    )


@pytest.fixture
def expired_record() -> TokenRecord:
    """Create an expired token record."""
    return TokenRecord(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=now_epoch() - 3600,
        scope=TEST_SCOPES[0],
        token_type="Bearer",
    )


# =============================================================================
# Redis Fixtures
# =============================================================================


class FakeRedis:
    """In-memory stand-in for a ``redis.asyncio.Redis`` client in tests."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.fail_ping = False
        self.fail_commands = False
        self.closed = False
        self.set_calls = 0

    async def ping(self) -> bool:
        if self.fail_ping:
            raise RedisConnectionError("Connection refused")
        return True

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        if self.fail_commands:
            raise RedisConnectionError("Connection reset")
        self.set_calls += 1
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def get(self, key: str) -> str | None:
        if self.fail_commands:
            raise RedisConnectionError("Connection reset")
        return self.data.get(key)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Create an empty in-memory Redis."""
    return FakeRedis()


@pytest.fixture
def redis_factory(fake_redis: FakeRedis) -> MagicMock:
    """Client factory returning the in-memory Redis; records connect attempts."""
    return MagicMock(side_effect=lambda url, **kwargs: fake_redis)


@pytest.fixture
def token_storage(redis_factory: MagicMock):
    """Create a TokenStorage backed by the in-memory Redis."""
    from workspace_mcp.auth.token_storage import TokenStorage

    return TokenStorage("redis://localhost:6379/0", client_factory=redis_factory)


# =============================================================================
# OAuth Manager Fixtures
# =============================================================================


@pytest.fixture
def oauth_manager(settings: Settings, token_storage):
    """Create an OAuthManager with in-memory storage."""
    from workspace_mcp.auth.oauth_manager import OAuthManager

    return OAuthManager(settings, storage=token_storage)


@pytest.fixture
def token_response() -> dict[str, Any]:
    """A token endpoint response as returned by the provider."""
    return {
        "access_token": "a",
        "refresh_token": "b",
        "expires_in": 3600,
        "token_type": "Bearer",
    }


# =============================================================================
# Mock HTTP Responses
# =============================================================================


def create_mock_response(json_data: dict[str, Any] | None, status_code: int = 200) -> MagicMock:
    """Create a mock httpx Response object."""
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.json.return_value = json_data
    mock_response.content = b"" if json_data is None else b"{...}"
    mock_response.text = ""
    mock_response.raise_for_status = MagicMock()
    return mock_response


@pytest.fixture
def mock_response():
    """Factory for mock httpx responses."""
    return create_mock_response


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Create a mock shared httpx.AsyncClient."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.request.return_value = create_mock_response({})
    client.delete.return_value = create_mock_response(None, status_code=204)
    return client


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
