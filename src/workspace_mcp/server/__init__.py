"""MCP server implementation for Google Workspace.

Provides tools across Gmail, Calendar, Drive, Docs, Sheets and Slides:

Gmail Tools (4):
- Profile lookup, search, labels
- Send existing drafts

Calendar Tools (5):
- List calendars
- List, create, update and delete events

Drive Tools (4):
- List, inspect, create and delete files

Docs / Sheets / Slides Tools (10):
- Get, list and create documents
- batchUpdate for spreadsheets and presentations

Transports: Stdio, or streamable HTTP at /mcp alongside the OAuth routes
Authentication: OAuth 2.0 tokens in Redis, keyed by session id (no refresh)
"""

from workspace_mcp.config import Settings
from workspace_mcp.server.app import create_app
from workspace_mcp.server.google_workspace_server import (
    GoogleWorkspaceServer,
    main,
)


def create_server(settings: Settings) -> GoogleWorkspaceServer:
    """Create and configure a Google Workspace MCP server.

    Args:
        settings: Validated startup configuration.

    Returns:
        GoogleWorkspaceServer: Configured server instance ready to run.

    Example:
        >>> server = create_server(load_settings())
        >>> asyncio.run(server.run())
    """
    return GoogleWorkspaceServer(settings)


__all__ = ["create_app", "create_server", "GoogleWorkspaceServer", "main"]
