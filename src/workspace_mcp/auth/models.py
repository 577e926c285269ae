"""Token and auth status models.

All expiry values are integer epoch **seconds**. Provider responses that
report expiry in other shapes are normalized by ``TokenRecord.from_token_response``.
"""

import time
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TOKEN_TYPE = "Bearer"  # nosec B105 - OAuth token type, not a password


def now_epoch() -> int:
    """Current time as integer epoch seconds."""
    return int(time.time())


class TokenRecord(BaseModel):
    """One session's OAuth grant as persisted in the token store.

    Attributes:
        access_token: Short-lived bearer credential.
        refresh_token: Long-lived renewal credential (stored, never used).
        expires_at: Access token expiry in epoch seconds.
        scope: Space-separated granted scopes.
        token_type: Token type, typically "Bearer".
    """

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    expires_at: int
    scope: str = ""
    token_type: str = DEFAULT_TOKEN_TYPE

    @property
    def scopes(self) -> list[str]:
        """Granted scopes as a list."""
        return self.scope.split()

    def is_expired(self, now: int | None = None) -> bool:
        """Check whether the access token has expired.

        Args:
            now: Current epoch seconds. Uses the wall clock if not provided.

        Returns:
            True once ``now`` reaches ``expires_at``.
        """
        if now is None:
            now = now_epoch()
        return now >= self.expires_at

    @classmethod
    def from_token_response(
        cls,
        response: dict[str, Any],
        *,
        default_scopes: Iterable[str] = (),
        now: int | None = None,
    ) -> "TokenRecord":
        """Build a record from a provider token endpoint response.

        Expiry is taken from, in order: ``expires_in`` (seconds from now),
        ``expiry_date`` (epoch milliseconds) or ``expires_at`` (epoch seconds).

        Args:
            response: Decoded token endpoint response.
            default_scopes: Scopes to record when the response has none.
            now: Current epoch seconds, for deterministic tests.

        Returns:
            TokenRecord with expiry in epoch seconds.

        Raises:
            ValueError: If the response carries no usable expiry.
        """
        if now is None:
            now = now_epoch()

        if response.get("expires_in") is not None:
            expires_at = now + int(response["expires_in"])
        elif response.get("expiry_date") is not None:
            expires_at = int(response["expiry_date"]) // 1000
        elif response.get("expires_at") is not None:
            expires_at = int(response["expires_at"])
        else:
            raise ValueError("Token response has no expiry information")

        scope = response.get("scope") or list(default_scopes)
        if not isinstance(scope, str):
            scope = " ".join(scope)

        return cls(
            access_token=response.get("access_token", ""),
            refresh_token=response.get("refresh_token"),
            expires_at=expires_at,
            scope=scope,
            token_type=response.get("token_type") or DEFAULT_TOKEN_TYPE,
        )


class AuthStatus(BaseModel):
    """Non-secret view of a session's authentication state."""

    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
    session_id: str | None = Field(default=None, alias="sessionId")
    message: str | None = None
    error: str | None = None
    auth_url: str | None = Field(default=None, alias="authUrl")
    token_type: str | None = Field(default=None, alias="tokenType")
    has_access_token: bool | None = Field(default=None, alias="hasAccessToken")
    has_refresh_token: bool | None = Field(default=None, alias="hasRefreshToken")
    expires_at: int | None = Field(default=None, alias="expiresAt")
    scopes: list[str] | None = None

    def to_json(self) -> str:
        """Serialize with camelCase keys, omitting unset fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
