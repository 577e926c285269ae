"""Command-line interface for workspace-mcp."""

import asyncio
import sys

import click

from workspace_mcp.__version__ import __version__
from workspace_mcp.config import Settings, configure_logging, load_settings
from workspace_mcp.errors import ConfigurationError, StoreUnavailable


def _load_settings_or_exit(require_default_session: bool = True) -> Settings:
    try:
        return load_settings(require_default_session=require_default_session)
    except ConfigurationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", envvar="WORKSPACE_MCP_LOG_LEVEL", default="INFO", help="Log level")
def main(log_level: str) -> None:
    """Google Workspace MCP Server with session-scoped OAuth.

    Exposes Gmail, Calendar, Drive, Docs, Sheets and Slides as MCP tools.
    Users authenticate through /auth/login; tokens are kept in Redis
    per session.
    """
    configure_logging(log_level)


@main.command()
@click.option("--host", default=None, help="Bind host (default: WORKSPACE_MCP_HOST or 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Bind port (default: WORKSPACE_MCP_PORT or 3000)")
def serve(host: str | None, port: int | None) -> None:
    """Start the HTTP server.

    Serves the OAuth routes (/auth/login, /auth/callback, /auth/status)
    and the MCP endpoint at /mcp over streamable HTTP.

    Requires GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI,
    GOOGLE_SCOPES, REDIS_URL and GOOGLE_MCP_SESSION_ID.
    """
    import uvicorn

    from workspace_mcp.server import create_app, create_server

    settings = _load_settings_or_exit()
    app = create_app(create_server(settings))

    bind_host = host or settings.http_host
    bind_port = port or settings.http_port
    click.echo(f"Starting Google Workspace MCP server on http://{bind_host}:{bind_port}", err=True)
    click.echo(f"Log in at http://{bind_host}:{bind_port}/auth/login", err=True)
    uvicorn.run(app, host=bind_host, port=bind_port)


@main.command()
def mcp() -> None:
    """Start the MCP server over stdio.

    Tools authenticate with the session named on each call, or with
    GOOGLE_MCP_SESSION_ID. Run 'workspace-mcp serve' to obtain a session
    through the browser OAuth flow.
    """
    from workspace_mcp.server import create_server

    settings = _load_settings_or_exit()

    try:
        click.echo("Starting Google Workspace MCP server...", err=True)
        asyncio.run(create_server(settings).run())
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@main.command("login-url")
@click.option("--state", default=None, help="State to embed; becomes the session id on callback")
def login_url(state: str | None) -> None:
    """Print the Google consent URL."""
    from workspace_mcp.auth import OAuthManager

    settings = _load_settings_or_exit(require_default_session=False)
    click.echo(OAuthManager(settings).authorization_url(state=state))


async def _check_status(settings: Settings, session_id: str | None) -> tuple[bool, str]:
    from workspace_mcp.auth import AuthStatusResource, OAuthManager

    manager = OAuthManager(settings)
    try:
        await manager.storage.ping()
        status = await AuthStatusResource(manager.storage, manager.resolver).read(session_id)
    finally:
        await manager.close()
    return status.authenticated, status.to_json()


@main.command()
@click.option("--session-id", default=None, help="Session to check (default: GOOGLE_MCP_SESSION_ID)")
def doctor(session_id: str | None) -> None:
    """Check configuration, token store and authentication status.

    Verifies:
    1. Required environment variables are set
    2. Redis is reachable
    3. The session has stored tokens
    """
    click.echo("Google Workspace MCP Status:")
    click.echo("")

    click.echo("Configuration:")
    settings = _load_settings_or_exit(require_default_session=False)
    click.echo("  ✓ OAuth client configured")
    click.echo(f"  Redirect URI: {settings.google_redirect_uri}")
    click.echo(f"  Scopes: {len(settings.google_scopes)} configured")
    if settings.default_session_id:
        click.echo("  ✓ Default session configured")
    else:
        click.echo("  ⚠️  GOOGLE_MCP_SESSION_ID not set")
    click.echo("")

    click.echo("Token store:")
    try:
        authenticated, report = asyncio.run(_check_status(settings, session_id))
    except StoreUnavailable as e:
        click.echo(f"  ❌ {e}")
        sys.exit(1)
    click.echo("  ✓ Redis reachable")
    click.echo("")

    click.echo("Authentication:")
    click.echo(report)
    click.echo("")

    if authenticated:
        click.echo("✓ Ready to use!")
    else:
        click.echo("❌ Not authenticated. Visit /auth/login on the running server.")
        sys.exit(1)


if __name__ == "__main__":
    main()
