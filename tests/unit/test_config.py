"""Unit tests for startup configuration."""

import logging
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from workspace_mcp.auth.session import SessionResolver
from workspace_mcp.config import (
    DEFAULT_EXCHANGE_TIMEOUT,
    DEFAULT_HTTP_PORT,
    Settings,
    configure_logging,
    load_settings,
    parse_scopes,
)
from workspace_mcp.errors import ConfigurationError


@pytest.fixture
def environ() -> dict[str, str]:
    """A complete environment."""
    return {
        "GOOGLE_CLIENT_ID": "client-id",
        "GOOGLE_CLIENT_SECRET": "client-secret",  # pragma: allowlist secret
        "GOOGLE_REDIRECT_URI": "http://127.0.0.1:3000/auth/callback",
        "GOOGLE_SCOPES": "https://www.googleapis.com/auth/gmail.readonly, https://www.googleapis.com/auth/drive",
        "REDIS_URL": "redis://localhost:6379/0",
        "GOOGLE_MCP_SESSION_ID": "sess-42",
    }


@pytest.mark.unit
class TestParseScopes:
    """Tests for parse_scopes()."""

    def test_should_split_on_commas(self) -> None:
        """Verify scopes are split and stripped."""
        assert parse_scopes("a, b ,c") == ("a", "b", "c")

    def test_should_drop_blank_entries(self) -> None:
        """Verify empty items are ignored."""
        assert parse_scopes("a,,b,") == ("a", "b")

    @pytest.mark.parametrize("value", [None, ""])
    def test_should_return_empty_for_missing(self, value: str | None) -> None:
        """Verify missing input yields no scopes."""
        assert parse_scopes(value) == ()


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings()."""

    def test_should_load_complete_environment(self, environ: dict[str, str]) -> None:
        """Verify all values are read and defaults applied."""
        settings = load_settings(environ)

        assert settings.google_client_id == "client-id"
        assert settings.google_scopes == (
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/drive",
        )
        assert settings.redis_url == "redis://localhost:6379/0"
        assert settings.default_session_id == "sess-42"
        assert settings.token_exchange_timeout == DEFAULT_EXCHANGE_TIMEOUT
        assert settings.http_port == DEFAULT_HTTP_PORT

    def test_should_report_every_missing_variable(self, environ: dict[str, str]) -> None:
        """Verify the error names each missing variable."""
        del environ["GOOGLE_CLIENT_ID"]
        environ["REDIS_URL"] = "  "

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(environ)

        message = str(exc_info.value)
        assert "GOOGLE_CLIENT_ID" in message
        assert "REDIS_URL" in message
        assert "Please check your .env file" in message

    def test_should_reject_empty_scope_list(self, environ: dict[str, str]) -> None:
        """Verify a scope list of only separators counts as missing."""
        environ["GOOGLE_SCOPES"] = " , ,"

        with pytest.raises(ConfigurationError, match="GOOGLE_SCOPES"):
            load_settings(environ)

    def test_should_require_default_session_when_serving(self, environ: dict[str, str]) -> None:
        """Verify GOOGLE_MCP_SESSION_ID is required by default."""
        del environ["GOOGLE_MCP_SESSION_ID"]

        with pytest.raises(ConfigurationError, match="GOOGLE_MCP_SESSION_ID"):
            load_settings(environ)

    def test_should_allow_missing_default_session_when_not_required(
        self, environ: dict[str, str]
    ) -> None:
        """Verify the default session can be optional."""
        del environ["GOOGLE_MCP_SESSION_ID"]

        settings = load_settings(environ, require_default_session=False)

        assert settings.default_session_id is None

    def test_should_read_optional_overrides(self, environ: dict[str, str]) -> None:
        """Verify host, port and timeout overrides are parsed."""
        environ["WORKSPACE_MCP_HOST"] = "0.0.0.0"  # nosec B104 - test value
        environ["WORKSPACE_MCP_PORT"] = "8080"
        environ["WORKSPACE_MCP_EXCHANGE_TIMEOUT"] = "5"

        settings = load_settings(environ)

        assert settings.http_host == "0.0.0.0"  # nosec B104 - test value
        assert settings.http_port == 8080
        assert settings.token_exchange_timeout == 5.0

    def test_should_reject_invalid_port(self, environ: dict[str, str]) -> None:
        """Verify malformed values surface as configuration errors."""
        environ["WORKSPACE_MCP_PORT"] = "not-a-port"

        with pytest.raises(ConfigurationError, match="http_port"):
            load_settings(environ)

    def test_should_load_dotenv_when_reading_process_environment(
        self, environ: dict[str, str]
    ) -> None:
        """Verify .env loading happens only for the process environment."""
        with (
            patch("workspace_mcp.config.load_dotenv") as mock_load_dotenv,
            patch.dict("os.environ", environ, clear=True),
        ):
            settings = load_settings()

        mock_load_dotenv.assert_called_once()
        assert settings.default_session_id == "sess-42"

    def test_should_relax_token_scope_for_process_environment(
        self, environ: dict[str, str]
    ) -> None:
        """Verify oauthlib accepts a broader granted scope after startup."""
        with (
            patch("workspace_mcp.config.load_dotenv"),
            patch.dict("os.environ", environ, clear=True),
        ):
            load_settings()
            relaxed = os.environ.get("OAUTHLIB_RELAX_TOKEN_SCOPE")

        assert relaxed == "1"

    def test_should_not_touch_process_environment_for_explicit_mapping(
        self, environ: dict[str, str]
    ) -> None:
        """Verify an explicit mapping leaves os.environ alone."""
        with patch.dict("os.environ", {}, clear=True):
            load_settings(environ)
            relaxed = os.environ.get("OAUTHLIB_RELAX_TOKEN_SCOPE")

        assert relaxed is None

    def test_should_reject_reserved_default_session(self, environ: dict[str, str]) -> None:
        """Verify the literal "default" cannot become the configured session."""
        environ["GOOGLE_MCP_SESSION_ID"] = " default "

        with pytest.raises(ConfigurationError, match="GOOGLE_MCP_SESSION_ID"):
            load_settings(environ)

    def test_should_never_resolve_to_reserved_session(self, environ: dict[str, str]) -> None:
        """Verify the resolver cannot be handed "default" through configuration."""
        environ["GOOGLE_MCP_SESSION_ID"] = "default"

        with pytest.raises(ConfigurationError):
            SessionResolver(load_settings(environ, require_default_session=False)).resolve(None)

    @pytest.mark.parametrize(
        "url", ["http://localhost:6379", "localhost:6379", "redis//localhost"]
    )
    def test_should_reject_unsupported_redis_url(self, environ: dict[str, str], url: str) -> None:
        """Verify a REDIS_URL redis-py cannot open is a configuration error."""
        environ["REDIS_URL"] = url

        with pytest.raises(ConfigurationError, match="REDIS_URL"):
            load_settings(environ)

    @pytest.mark.parametrize(
        "url", ["redis://localhost:6379/0", "rediss://user:pw@cache:6380", "unix:///tmp/redis.sock"]
    )
    def test_should_accept_redis_url_schemes(self, environ: dict[str, str], url: str) -> None:
        """Verify TCP, TLS and socket URLs are accepted."""
        environ["REDIS_URL"] = url

        assert load_settings(environ).redis_url == url


@pytest.mark.unit
class TestSettings:
    """Tests for the Settings model."""

    def test_should_be_immutable(self, settings: Settings) -> None:
        """Verify settings cannot be changed after startup."""
        with pytest.raises(ValidationError):
            settings.redis_url = "redis://elsewhere"  # type: ignore[misc]

    def test_should_reject_reserved_default_session(self, settings: Settings) -> None:
        """Verify "default" is refused even when Settings is built directly."""
        with pytest.raises(ValidationError, match="reserved"):
            Settings(**{**settings.model_dump(), "default_session_id": "default"})


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_should_use_requested_level(self) -> None:
        """Verify the level name is passed to basicConfig."""
        with patch("workspace_mcp.config.logging.basicConfig") as mock_basic:
            configure_logging("debug")

        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG

    def test_should_fall_back_to_environment(self) -> None:
        """Verify WORKSPACE_MCP_LOG_LEVEL is used when no level is given."""
        with (
            patch("workspace_mcp.config.logging.basicConfig") as mock_basic,
            patch.dict("os.environ", {"WORKSPACE_MCP_LOG_LEVEL": "WARNING"}),
        ):
            configure_logging()

        assert mock_basic.call_args.kwargs["level"] == logging.WARNING
