"""OAuth manager for session-scoped Google Workspace authentication.

Covers both halves of the token lifecycle:

- Bootstrap: build the consent URL, then exchange the returned authorization
  code for tokens and persist them under a session identifier.
- Use: load a session's tokens, check they are unexpired, and hand out an
  ``AuthorizedClient`` for the API wrappers.

Expired tokens are reported as ``TokenExpired``; no refresh is attempted even
though a refresh token is stored.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import httpx
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from workspace_mcp.auth.client import AuthorizedClient
from workspace_mcp.auth.models import TokenRecord, now_epoch
from workspace_mcp.auth.session import SessionResolver, normalize_session_id
from workspace_mcp.auth.token_storage import TokenStorage
from workspace_mcp.config import Settings
from workspace_mcp.errors import (
    AuthExchangeFailed,
    InvalidRequest,
    NotAuthenticated,
    TokenExpired,
)

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105 - public endpoint


def generate_session_id() -> str:
    """Generate a fresh random session identifier."""
    return str(uuid.uuid4())


class OAuthManager:
    """OAuth authentication manager for session-keyed Google credentials.

    Attributes:
        settings: Process-wide configuration.
        storage: Token store for persisting credentials.
        resolver: Session resolver used before every store lookup.

    Example:
        ```python
        manager = OAuthManager(settings)

        # Step 1: send the user to Google
        url = manager.authorization_url(state="sess-42")

        # Step 2: on callback
        session_id = await manager.complete_authorization(code, state)

        # Later, per API call
        client = await manager.authenticate(session_id)
        labels = await client.request("GET", GMAIL_LABELS_URL)
        ```
    """

    def __init__(
        self,
        settings: Settings,
        storage: TokenStorage | None = None,
        resolver: SessionResolver | None = None,
    ) -> None:
        """Initialize OAuth manager.

        Args:
            settings: Validated startup configuration.
            storage: Token storage instance. Creates one from ``settings.redis_url`` if not provided.
            resolver: Session resolver. Creates one from ``settings`` if not provided.
        """
        self.settings = settings
        self.storage = storage or TokenStorage(settings.redis_url)
        self.resolver = resolver or SessionResolver(settings)
        self._http_client: httpx.AsyncClient | None = None

    def _client_config(self) -> dict[str, Any]:
        """Google OAuth client configuration for a Web Application client."""
        return {
            "web": {
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self.settings.google_redirect_uri],
            }
        }

    def _create_flow(self) -> Flow:
        """Create an OAuth flow.

        PKCE is disabled; no code verifier is carried from consent to callback.
        """
        return Flow.from_client_config(
            self._client_config(),
            scopes=list(self.settings.google_scopes),
            redirect_uri=self.settings.google_redirect_uri,
            autogenerate_code_verifier=False,
        )

    def authorization_url(self, state: str | None = None) -> str:
        """Build the provider consent URL.

        Requests offline access and forces re-consent so that a refresh token
        is issued even on repeat authorizations.

        Args:
            state: Opaque value echoed back on the callback; becomes the session id.

        Returns:
            URL to redirect the user to.
        """
        flow = self._create_flow()
        auth_url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=state,
        )
        return str(auth_url)

    def _exchange_code(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens (blocking operation).

        Args:
            code: One-time authorization code from the callback.

        Returns:
            Token endpoint response.
        """
        flow = self._create_flow()
        return dict(flow.fetch_token(code=code))

    async def complete_authorization(self, code: Any, state: str | None = None) -> str:
        """Complete the OAuth handshake and persist the resulting tokens.

        Args:
            code: Authorization code from the provider redirect.
            state: Optional state from the redirect, used as the session id.

        Returns:
            The session id the tokens were stored under.

        Raises:
            InvalidRequest: If no usable code was supplied.
            AuthExchangeFailed: If the exchange or the store write fails.
        """
        if not code or not isinstance(code, str):
            logger.warning("Invalid authorization code received")
            raise InvalidRequest("Invalid authorization code")

        try:
            logger.info("Exchanging authorization code for tokens")
            loop = asyncio.get_running_loop()
            response = await asyncio.wait_for(
                loop.run_in_executor(None, self._exchange_code, code),
                timeout=self.settings.token_exchange_timeout,
            )
            logger.info(
                "Tokens received (access token: %s, refresh token: %s)",
                bool(response.get("access_token")),
                bool(response.get("refresh_token")),
            )

            record = TokenRecord.from_token_response(
                response, default_scopes=self.settings.google_scopes
            )
            session_id = normalize_session_id(state) or generate_session_id()
            await self.storage.put(session_id, record)
        except Exception as e:
            logger.error("OAuth callback error for code %s...: %s", code[:10], e)
            raise AuthExchangeFailed("Failed to authenticate") from e

        logger.info("OAuth flow completed for session %s", session_id)
        return session_id

    def _record_to_credentials(self, record: TokenRecord) -> Credentials:
        """Convert a TokenRecord to google-auth Credentials.

        Args:
            record: Stored token record.

        Returns:
            Google OAuth2 credentials carrying the client identity.
        """
        # google-auth compares expiry against a naive UTC datetime
        expiry = datetime.fromtimestamp(record.expires_at, tz=timezone.utc).replace(tzinfo=None)
        return Credentials(
            token=record.access_token,
            refresh_token=record.refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self.settings.google_client_id,
            client_secret=self.settings.google_client_secret,
            scopes=record.scopes or list(self.settings.google_scopes),
            expiry=expiry,
        )

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling.

        Returns:
            Shared httpx.AsyncClient instance.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def authenticate(self, session_id: str | None = None) -> AuthorizedClient:
        """Load a session's tokens and build an authorized client.

        Invoked fresh on every API operation; the client is never cached.

        Args:
            session_id: Explicit session id, or None for the configured default.

        Returns:
            AuthorizedClient for the session.

        Raises:
            ConfigurationError: If no session can be resolved.
            NotAuthenticated: If the session has no stored tokens.
            TokenExpired: If the stored access token has expired.
            StoreUnavailable: If the token store cannot be reached.
        """
        resolved = self.resolver.resolve(session_id)
        logger.info("Getting authenticated client for session %s", resolved)

        record = await self.storage.get(resolved)
        if record is None:
            logger.error("No authentication tokens found for session %s", resolved)
            raise NotAuthenticated(resolved)

        now = now_epoch()
        if record.is_expired(now):
            logger.warning(
                "Access token expired for session %s (expires_at=%d, now=%d)",
                resolved,
                record.expires_at,
                now,
            )
            raise TokenExpired(resolved, record.expires_at)

        credentials = self._record_to_credentials(record)
        return AuthorizedClient(resolved, credentials, await self._get_http_client())

    async def close(self) -> None:
        """Close the shared HTTP client and the token store connection."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        await self.storage.close()
