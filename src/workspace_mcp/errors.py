"""Exception hierarchy for workspace-mcp.

Core components raise these; boundaries (tool dispatch, HTTP routes, CLI)
convert them into their user-visible shape. ``status_code`` is the HTTP
status used by the route layer.
"""


class WorkspaceAuthError(Exception):
    """Base class for all workspace-mcp errors."""

    status_code: int = 500


class ConfigurationError(WorkspaceAuthError):
    """Required startup configuration is missing or invalid."""


class InvalidRequest(WorkspaceAuthError):
    """Malformed caller input. Not retryable."""

    status_code = 400


class NotAuthenticated(WorkspaceAuthError):
    """No token record exists for the resolved session."""

    status_code = 401

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            "No authentication tokens found. Please authenticate first "
            "by visiting /auth/login."
        )


class TokenExpired(WorkspaceAuthError):
    """The stored access token has expired. No refresh is attempted."""

    status_code = 401

    def __init__(self, session_id: str, expires_at: int) -> None:
        self.session_id = session_id
        self.expires_at = expires_at
        super().__init__("Token expired. Please re-authenticate by visiting /auth/login.")


class AuthExchangeFailed(WorkspaceAuthError):
    """Exchanging the authorization code, or persisting its tokens, failed."""


class StoreUnavailable(WorkspaceAuthError):
    """The token store could not be reached."""

    status_code = 503


class TokenDecodeError(WorkspaceAuthError):
    """A stored token record could not be deserialized."""
