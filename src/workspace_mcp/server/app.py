"""Starlette application serving the OAuth routes and MCP over streamable HTTP."""

import contextlib
import logging
from collections.abc import AsyncIterator

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Mount
from starlette.types import Receive, Scope, Send

from workspace_mcp.server.auth_routes import routes as auth_routes
from workspace_mcp.server.google_workspace_server import GoogleWorkspaceServer

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


def create_app(workspace_server: GoogleWorkspaceServer) -> Starlette:
    """Build the HTTP application for a workspace server.

    Args:
        workspace_server: Server whose tools and resources are exposed at /mcp.

    Returns:
        Starlette app with auth routes and the MCP endpoint.
    """
    session_manager = StreamableHTTPSessionManager(app=workspace_server.server, stateless=True)

    async def handle_mcp(scope: Scope, receive: Receive, send: Send) -> None:
        await session_manager.handle_request(scope, receive, send)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            logger.info("Registered routes:")
            for route in app.routes:
                logger.info("   %s", getattr(route, "path", route))
            try:
                yield
            finally:
                await workspace_server.close()

    app = Starlette(
        routes=[*auth_routes, Mount(MCP_PATH, app=handle_mcp)],
        lifespan=lifespan,
    )
    app.state.manager = workspace_server.manager
    app.state.auth_resource = workspace_server.auth_resource
    return app
