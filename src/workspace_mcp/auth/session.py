"""Session identifier resolution.

Callers may name a session explicitly, or leave it out and fall back to the
configured default. The legacy literal ``"default"`` is accepted as an alias
for "no session supplied" and never reaches the token store.
"""

from workspace_mcp.config import DEFAULT_SESSION_ALIAS, Settings
from workspace_mcp.errors import ConfigurationError


def normalize_session_id(session_id: str | None) -> str | None:
    """Map missing, blank and ``"default"`` session ids to None."""
    if session_id is None or not session_id.strip() or session_id == DEFAULT_SESSION_ALIAS:
        return None
    return session_id


class SessionResolver:
    """Pick the session identifier that names the token record to use.

    Resolution is stateless and runs at every call site.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def resolve(self, session_id: str | None = None) -> str:
        """Resolve a caller-supplied session id to a concrete store key.

        Args:
            session_id: Explicit session id, or None to use the default.

        Returns:
            The session id to look up.

        Raises:
            ConfigurationError: If no session was supplied and no default is configured.
        """
        explicit = normalize_session_id(session_id)
        if explicit is not None:
            return explicit

        if not self.settings.default_session_id:
            raise ConfigurationError(
                "No session ID supplied and GOOGLE_MCP_SESSION_ID is not configured"
            )
        return self.settings.default_session_id
