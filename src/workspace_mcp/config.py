"""Startup configuration for workspace-mcp.

Settings are read once from the environment (and an optional ``.env`` file)
into an immutable ``Settings`` object that is passed to every component.

Environment Variables:
    GOOGLE_CLIENT_ID: Google OAuth client ID (required)
    GOOGLE_CLIENT_SECRET: Google OAuth client secret (required)
    GOOGLE_REDIRECT_URI: OAuth redirect URI, e.g. https://host/auth/callback (required)
    GOOGLE_SCOPES: Comma-separated OAuth scopes (required)
    REDIS_URL: Redis connection URL for the token store (required)
    GOOGLE_MCP_SESSION_ID: Default session identifier (required for serving)
    WORKSPACE_MCP_EXCHANGE_TIMEOUT: Token exchange timeout in seconds (default: 30)
    WORKSPACE_MCP_HOST: HTTP bind host (default: 127.0.0.1)
    WORKSPACE_MCP_PORT: HTTP bind port (default: 3000)
    WORKSPACE_MCP_LOG_LEVEL: Log level (default: INFO)
"""

import logging
import os
from collections.abc import Mapping
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workspace_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 3000
DEFAULT_EXCHANGE_TIMEOUT = 30.0

REQUIRED_VARIABLES = (
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
    "GOOGLE_SCOPES",
    "REDIS_URL",
)
DEFAULT_SESSION_VARIABLE = "GOOGLE_MCP_SESSION_ID"
DEFAULT_SESSION_ALIAS = "default"
REDIS_URL_SCHEMES = ("redis", "rediss", "unix")


class Settings(BaseModel):
    """Process-wide, immutable configuration.

    Attributes:
        google_client_id: OAuth client identifier.
        google_client_secret: OAuth client secret.
        google_redirect_uri: Redirect URI registered with Google.
        google_scopes: Scopes requested at consent time.
        redis_url: Token store connection address.
        default_session_id: Session used when a caller supplies none.
        token_exchange_timeout: Upper bound for the code exchange, in seconds.
        http_host: Bind host for the HTTP transport.
        http_port: Bind port for the HTTP transport.
    """

    model_config = ConfigDict(frozen=True)

    google_client_id: str = Field(..., min_length=1)
    google_client_secret: str = Field(..., min_length=1)
    google_redirect_uri: str = Field(..., min_length=1)
    google_scopes: tuple[str, ...] = Field(..., min_length=1)
    redis_url: str = Field(..., min_length=1)
    default_session_id: str | None = None
    token_exchange_timeout: float = Field(default=DEFAULT_EXCHANGE_TIMEOUT, gt=0)
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = Field(default=DEFAULT_HTTP_PORT, gt=0, lt=65536)

    @field_validator("default_session_id")
    @classmethod
    def _reject_session_alias(cls, value: str | None) -> str | None:
        if value == DEFAULT_SESSION_ALIAS:
            raise ValueError(f"{DEFAULT_SESSION_ALIAS!r} is reserved and cannot name a session")
        return value


def parse_scopes(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated scope list, dropping blanks."""
    if not value:
        return ()
    return tuple(scope.strip() for scope in value.split(",") if scope.strip())


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    require_default_session: bool = True,
) -> Settings:
    """Load and validate settings.

    Args:
        environ: Mapping to read from. Uses ``os.environ`` (after loading
            ``.env``) if not provided.
        require_default_session: Treat a missing GOOGLE_MCP_SESSION_ID as fatal.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If any required variable is missing or invalid.
    """
    if environ is None:
        load_dotenv()
        # Google may grant a superset of the requested scopes
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")
        environ = os.environ

    logger.info("Validating environment variables")

    required = list(REQUIRED_VARIABLES)
    if require_default_session:
        required.append(DEFAULT_SESSION_VARIABLE)

    missing = [name for name in required if not environ.get(name, "").strip()]
    if "GOOGLE_SCOPES" not in missing and not parse_scopes(environ.get("GOOGLE_SCOPES")):
        missing.append("GOOGLE_SCOPES")
    if missing:
        logger.error("Invalid environment variables: %s", ", ".join(missing))
        raise ConfigurationError(
            f"Invalid environment variables: {', '.join(missing)}. "
            "Please check your .env file"
        )

    invalid = []
    if urlparse(environ["REDIS_URL"].strip()).scheme not in REDIS_URL_SCHEMES:
        invalid.append("REDIS_URL")
    default_session_id = environ.get(DEFAULT_SESSION_VARIABLE, "").strip() or None
    if default_session_id == DEFAULT_SESSION_ALIAS:
        invalid.append(DEFAULT_SESSION_VARIABLE)
    if invalid:
        logger.error("Invalid configuration values: %s", ", ".join(invalid))
        raise ConfigurationError(f"Invalid configuration values: {', '.join(invalid)}")

    try:
        settings = Settings(
            google_client_id=environ["GOOGLE_CLIENT_ID"].strip(),
            google_client_secret=environ["GOOGLE_CLIENT_SECRET"].strip(),
            google_redirect_uri=environ["GOOGLE_REDIRECT_URI"].strip(),
            google_scopes=parse_scopes(environ["GOOGLE_SCOPES"]),
            redis_url=environ["REDIS_URL"].strip(),
            default_session_id=default_session_id,
            token_exchange_timeout=environ.get(
                "WORKSPACE_MCP_EXCHANGE_TIMEOUT", DEFAULT_EXCHANGE_TIMEOUT
            ),
            http_host=environ.get("WORKSPACE_MCP_HOST", DEFAULT_HTTP_HOST),
            http_port=environ.get("WORKSPACE_MCP_PORT", DEFAULT_HTTP_PORT),
        )
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise ConfigurationError(f"Invalid configuration values: {', '.join(fields)}") from e

    logger.info("Environment variables validated successfully")
    return settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for entry points.

    Args:
        level: Log level name. Falls back to WORKSPACE_MCP_LOG_LEVEL, then INFO.
    """
    level_name = (level or os.environ.get("WORKSPACE_MCP_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
