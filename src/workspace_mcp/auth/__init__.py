"""Session-scoped OAuth authentication for Google Workspace MCP.

Tokens obtained through the web OAuth flow are stored in Redis under
``oauth_tokens:{session_id}`` and loaded again for every API call.

Quick Start:
    ```python
    from workspace_mcp.auth import OAuthManager
    from workspace_mcp.config import load_settings

    manager = OAuthManager(load_settings())

    # Send the user to Google
    url = manager.authorization_url()

    # On callback
    session_id = await manager.complete_authorization(code, state)

    # Get an authorized client for API use
    client = await manager.authenticate(session_id)
    ```
"""

from workspace_mcp.auth.client import AuthorizedClient
from workspace_mcp.auth.models import AuthStatus, TokenRecord
from workspace_mcp.auth.oauth_manager import OAuthManager, generate_session_id
from workspace_mcp.auth.session import SessionResolver, normalize_session_id
from workspace_mcp.auth.status import AUTH_RESOURCE_URI, AuthStatusResource
from workspace_mcp.auth.token_storage import TokenStorage

__all__ = [
    "OAuthManager",
    "TokenStorage",
    "TokenRecord",
    "AuthStatus",
    "AuthStatusResource",
    "AuthorizedClient",
    "SessionResolver",
    "AUTH_RESOURCE_URI",
    "generate_session_id",
    "normalize_session_id",
]
