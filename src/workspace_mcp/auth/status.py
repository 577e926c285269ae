"""Read-only auth status resource.

Polled by clients for diagnostics, so ``read`` never raises: every failure is
reported as ``authenticated: false`` with a message describing why.
"""

import logging

from workspace_mcp.auth.models import AuthStatus
from workspace_mcp.auth.session import SessionResolver
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

AUTH_RESOURCE_URI = "auth://oauth/google"
AUTH_RESOURCE_NAME = "google_oauth_auth"
AUTH_RESOURCE_DESCRIPTION = (
    "Google OAuth authentication resource for managing authentication state"
)
AUTH_RESOURCE_MIME_TYPE = "application/json"
LOGIN_PATH = "/auth/login"


class AuthStatusResource:
    """Projection of a session's token record without any secret values."""

    uri = AUTH_RESOURCE_URI
    name = AUTH_RESOURCE_NAME
    description = AUTH_RESOURCE_DESCRIPTION
    mime_type = AUTH_RESOURCE_MIME_TYPE

    def __init__(self, storage: TokenStorage, resolver: SessionResolver) -> None:
        self.storage = storage
        self.resolver = resolver

    async def read(self, session_id: str | None = None) -> AuthStatus:
        """Report whether a session is authenticated.

        Args:
            session_id: Session to inspect; the configured default if None.

        Returns:
            AuthStatus describing the session.
        """
        logger.info("Reading auth resource")

        try:
            resolved = self.resolver.resolve(session_id)
        except ConfigurationError:
            logger.warning("No session ID available for auth status")
            return AuthStatus(
                authenticated=False,
                error="No session ID found.",
                message=(
                    "Please log in and set your session ID as GOOGLE_MCP_SESSION_ID "
                    "in the server configuration."
                ),
                auth_url=LOGIN_PATH,
            )

        try:
            record = await self.storage.get(resolved)
        except Exception:
            logger.exception("Error reading auth resource")
            return AuthStatus(
                authenticated=False,
                error="Failed to read authentication status",
                message="Authentication service unavailable",
                auth_url=LOGIN_PATH,
            )

        if record is None:
            logger.warning("No authentication tokens found")
            return AuthStatus(
                authenticated=False,
                session_id=resolved,
                message="No authentication tokens found. Please authenticate first.",
                auth_url=LOGIN_PATH,
            )

        logger.info("Authentication tokens found, expiring at %d", record.expires_at)
        return AuthStatus(
            authenticated=True,
            session_id=resolved,
            token_type=record.token_type,
            has_access_token=bool(record.access_token),
            has_refresh_token=bool(record.refresh_token),
            expires_at=record.expires_at,
            scopes=record.scopes,
            auth_url=LOGIN_PATH,
        )

    async def read_text(self, session_id: str | None = None) -> str:
        """Read the status as indented JSON."""
        return (await self.read(session_id)).to_json()
