"""Google Workspace MCP Server with session-scoped OAuth.

Exposes Gmail, Calendar, Drive, Docs, Sheets and Slides as MCP tools.
Tokens live in Redis, keyed by an opaque session identifier.
"""

from workspace_mcp.__version__ import __version__

__all__ = ["__version__"]
