"""HTTP endpoints for the OAuth bootstrap flow.

GET /auth/login     -> redirect to Google consent
GET /auth/callback  -> exchange code, store tokens, report the session id
GET /auth/status    -> auth status JSON for a session (diagnostics)
GET /health         -> liveness
"""

import html
import logging
from datetime import datetime, timezone

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from workspace_mcp.auth import AuthStatusResource, OAuthManager, generate_session_id
from workspace_mcp.errors import AuthExchangeFailed, InvalidRequest

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>OAuth Success</title>
  <style>
    body {{ font-family: sans-serif; background: #f9f9f9; color: #222; padding: 2em; }}
    .container {{ background: #fff; border-radius: 8px; box-shadow: 0 2px 8px #0001;
                  padding: 2em; max-width: 500px; margin: 2em auto; }}
    code {{ background: #eee; padding: 0.2em 0.4em; border-radius: 4px; }}
  </style>
</head>
<body>
  <div class="container">
    <h2>OAuth Authentication Successful!</h2>
    <p>Your session ID is:</p>
    <p><code>{session_id}</code></p>
    <p>
      Pass it as <code>session_id</code> on tool calls, or configure it as the default:<br>
      <code>GOOGLE_MCP_SESSION_ID</code> = <code>{session_id}</code>
    </p>
  </div>
</body>
</html>"""


def _manager(request: Request) -> OAuthManager:
    manager: OAuthManager = request.app.state.manager
    return manager


def _prefers_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


async def login(request: Request) -> Response:
    """Redirect the user to the Google consent screen.

    An optional ``state`` query parameter is forwarded and becomes the
    session id on callback; otherwise a fresh one is generated.
    """
    state = request.query_params.get("state") or generate_session_id()
    auth_url = _manager(request).authorization_url(state=state)
    logger.info("Redirecting to Google consent screen")
    return RedirectResponse(auth_url, status_code=302)


async def callback(request: Request) -> Response:
    """Complete the OAuth flow started by ``login``."""
    code = request.query_params.get("code")
    state = request.query_params.get("state")

    logger.info(
        "OAuth callback received (has code: %s, has state: %s)",
        bool(code),
        bool(state),
    )
    if "error" in request.query_params:
        logger.warning("Provider reported an error: %s", request.query_params["error"])

    try:
        session_id = await _manager(request).complete_authorization(code, state)
    except InvalidRequest:
        return JSONResponse({"error": "Invalid authorization code"}, status_code=400)
    except AuthExchangeFailed:
        return JSONResponse({"error": "Failed to authenticate"}, status_code=500)

    if _prefers_html(request):
        return HTMLResponse(SUCCESS_PAGE.format(session_id=html.escape(session_id)))

    return JSONResponse(
        {
            "success": True,
            "sessionId": session_id,
            "message": "OAuth authentication successful",
        }
    )


async def status(request: Request) -> Response:
    """Report auth status for ``?session_id=`` or the default session."""
    resource: AuthStatusResource = request.app.state.auth_resource
    auth_status = await resource.read(request.query_params.get("session_id"))
    return JSONResponse(auth_status.model_dump(by_alias=True, exclude_none=True))


async def health(request: Request) -> Response:
    return JSONResponse(
        {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


routes = [
    Route("/auth/login", endpoint=login, methods=["GET"]),
    Route("/auth/callback", endpoint=callback, methods=["GET"]),
    Route("/auth/status", endpoint=status, methods=["GET"]),
    Route("/health", endpoint=health, methods=["GET"]),
]
