"""Google Workspace MCP server with session-scoped OAuth.

This MCP server provides tools for interacting with Google Workspace APIs
(Gmail, Calendar, Drive, Docs, Sheets, Slides). Every tool call resolves a
session, loads that session's tokens from Redis and builds a fresh authorized
client; expired tokens are reported back to the caller rather than refreshed.

Tool results are JSON envelopes:
    {"success": true, "data": {...}}
    {"success": false, "error": "...", "error_type": "..."}
"""

import asyncio
import json
import logging
import mimetypes
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl, ValidationError

from workspace_mcp.auth import AuthStatusResource, OAuthManager
from workspace_mcp.config import Settings, configure_logging, load_settings
from workspace_mcp.errors import InvalidRequest, WorkspaceAuthError
from workspace_mcp.server.tool_schemas import (
    TOOL_ARGS,
    CalendarArgs,
    CreateCalendarArgs,
    CreateCalendarEventArgs,
    CreateDriveFileArgs,
    CreatePresentationArgs,
    CreateSheetArgs,
    DeleteCalendarEventArgs,
    DownloadDriveFileArgs,
    DriveFileArgs,
    GetDocArgs,
    GetPresentationArgs,
    GetSheetArgs,
    ListCalendarEventsArgs,
    ListDriveFilesArgs,
    ListFilesArgs,
    SearchGmailArgs,
    SendGmailDraftArgs,
    SessionArgs,
    UpdateCalendarArgs,
    UpdateCalendarEventArgs,
    UpdatePresentationArgs,
    UpdateSheetArgs,
    UploadDriveFileArgs,
    build_tools,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "workspace-mcp"

# Google API base URLs
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_API_BASE = "https://www.googleapis.com/upload/drive/v3"
DOCS_API_BASE = "https://docs.googleapis.com/v1"
SHEETS_API_BASE = "https://sheets.googleapis.com/v4"
SLIDES_API_BASE = "https://slides.googleapis.com/v1"

DOCS_MIME_TYPE = "application/vnd.google-apps.document"
SHEETS_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
SLIDES_MIME_TYPE = "application/vnd.google-apps.presentation"
DRIVE_FILE_FIELDS = "files(id,name,mimeType,modifiedTime,webViewLink),nextPageToken"
DRIVE_FILE_DETAIL_FIELDS = "id,name,mimeType,size,modifiedTime,parents,webViewLink"

DEFAULT_EVENT_WINDOW = timedelta(days=7)


def _rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _segment(value: str) -> str:
    """Escape an ID for use as a single URL path segment."""
    return quote(value, safe="@")


class GoogleWorkspaceServer:
    """MCP server for Google Workspace APIs.

    Attributes:
        settings: Process-wide configuration.
        server: MCP Server instance.
        manager: OAuthManager that authenticates each tool call.
        auth_resource: Auth status resource exposed over MCP.
    """

    def __init__(self, settings: Settings, manager: OAuthManager | None = None) -> None:
        """Initialize the Google Workspace MCP server.

        Args:
            settings: Validated startup configuration.
            manager: OAuth manager. Creates one from ``settings`` if not provided.
        """
        self.settings = settings
        self.server = Server(SERVER_NAME)
        self.manager = manager or OAuthManager(settings)
        self.auth_resource = AuthStatusResource(self.manager.storage, self.manager.resolver)
        self._handlers: dict[str, Callable[[Any], Awaitable[dict[str, Any]]]] = {
            # Gmail
            "get_user_profile": self._get_user_profile,
            "search_gmail": self._search_gmail,
            "list_gmail_labels": self._list_gmail_labels,
            "send_gmail_draft": self._send_gmail_draft,
            # Calendar
            "list_google_calendars": self._list_google_calendars,
            "list_calendar_events": self._list_calendar_events,
            "create_calendar_event": self._create_calendar_event,
            "update_calendar_event": self._update_calendar_event,
            "delete_calendar_event": self._delete_calendar_event,
            "get_calendar": self._get_calendar,
            "create_calendar": self._create_calendar,
            "update_calendar": self._update_calendar,
            "delete_calendar": self._delete_calendar,
            # Drive
            "list_drive_files": self._list_drive_files,
            "get_drive_file": self._get_drive_file,
            "create_drive_file": self._create_drive_file,
            "upload_drive_file": self._upload_drive_file,
            "download_drive_file": self._download_drive_file,
            "delete_drive_file": self._delete_drive_file,
            # Docs
            "get_google_doc": self._get_google_doc,
            "list_google_docs": self._list_google_docs,
            # Sheets
            "get_google_sheet": self._get_google_sheet,
            "list_google_sheets": self._list_google_sheets,
            "create_google_sheet": self._create_google_sheet,
            "update_google_sheet": self._update_google_sheet,
            "delete_google_sheet": self._delete_google_sheet,
            # Slides
            "get_google_slide": self._get_google_slide,
            "list_google_slides": self._list_google_slides,
            "create_google_slide": self._create_google_slide,
            "update_google_slide": self._update_google_slide,
            "delete_google_slide": self._delete_google_slide,
        }
        self._setup_handlers()

    async def close(self) -> None:
        """Release the shared HTTP client and the token store connection."""
        await self.manager.close()

    def _setup_handlers(self) -> None:
        """Register MCP tool and resource handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return build_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            result = await self.handle_tool_call(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            """Return the auth status resource."""
            return [
                Resource(
                    uri=AnyUrl(self.auth_resource.uri),
                    name=self.auth_resource.name,
                    description=self.auth_resource.description,
                    mimeType=self.auth_resource.mime_type,
                )
            ]

        @self.server.read_resource()
        async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
            """Read the auth status resource."""
            if str(uri) != self.auth_resource.uri:
                raise ValueError(f"Unknown resource: {uri}")
            text = await self.auth_resource.read_text()
            return [ReadResourceContents(content=text, mime_type=self.auth_resource.mime_type)]

    async def handle_tool_call(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Run a tool and wrap its outcome in a success/error envelope.

        Args:
            name: Tool name.
            arguments: Raw tool arguments.

        Returns:
            Envelope dictionary.
        """
        try:
            data = await self._dispatch_tool(name, arguments or {})
            return {"success": True, "data": data}
        except WorkspaceAuthError as e:
            logger.warning("Tool %s failed: %s", name, e)
            return {"success": False, "error": str(e), "error_type": type(e).__name__}
        except httpx.HTTPStatusError as e:
            logger.error(
                "Google API error in tool %s: %s %s",
                name,
                e.response.status_code,
                e.response.text,
            )
            return {
                "success": False,
                "error": f"Google API returned {e.response.status_code}: {e.response.text}",
                "error_type": "GoogleAPIError",
            }
        except Exception as e:
            logger.exception("Error calling tool %s", name)
            return {"success": False, "error": str(e), "error_type": type(e).__name__}

    async def _dispatch_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate arguments and dispatch to the tool handler.

        Raises:
            InvalidRequest: If the tool is unknown or the arguments are invalid.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise InvalidRequest(f"Unknown tool: {name}")

        _, model = TOOL_ARGS[name]
        try:
            args = model.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidRequest(f"Invalid arguments for {name}: {problems}") from e

        logger.info("Calling tool %s", name)
        return await handler(args)

    async def _list_drive_by_mime_type(self, args: ListFilesArgs, mime_type: str) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        result = await client.request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={
                "q": f"mimeType='{mime_type}' and trashed=false",
                "pageSize": args.page_size,
                "fields": DRIVE_FILE_FIELDS,
            },
        )
        files = result.get("files", [])
        return {"files": files, "total": len(files)}

    # =========================================================================
    # Gmail
    # =========================================================================

    async def _get_user_profile(self, args: SessionArgs) -> dict[str, Any]:
        """Get the authenticated user's profile."""
        client = await self.manager.authenticate(args.session_id)
        profile = await client.request("GET", USERINFO_URL)
        logger.info("User profile retrieved for session %s", client.session_id)
        return {"profile": profile}

    async def _search_gmail(self, args: SearchGmailArgs) -> dict[str, Any]:
        """Search Gmail and fetch the full content of each match.

        Args:
            args: Query and result limit.

        Returns:
            Matching messages with total count and the query used.
        """
        client = await self.manager.authenticate(args.session_id)
        listing = await client.request(
            "GET",
            f"{GMAIL_API_BASE}/users/me/messages",
            params={"q": args.query, "maxResults": args.max_results},
        )
        messages = listing.get("messages", [])
        logger.info("Gmail search matched %d messages", len(messages))

        details = await asyncio.gather(
            *[
                client.request("GET", f"{GMAIL_API_BASE}/users/me/messages/{_segment(msg['id'])}")
                for msg in messages
            ]
        )
        return {"messages": list(details), "total": len(details), "query": args.query}

    async def _list_gmail_labels(self, args: SessionArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        result = await client.request("GET", f"{GMAIL_API_BASE}/users/me/labels")
        labels = result.get("labels", [])
        return {"labels": labels, "total": len(labels)}

    async def _send_gmail_draft(self, args: SendGmailDraftArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        message = await client.request(
            "POST",
            f"{GMAIL_API_BASE}/users/me/drafts/send",
            json_data={"id": args.draft_id},
        )
        logger.info("Sent Gmail draft %s", args.draft_id)
        return {"message": message}

    # =========================================================================
    # Calendar
    # =========================================================================

    async def _list_google_calendars(self, args: SessionArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        result = await client.request("GET", f"{CALENDAR_API_BASE}/users/me/calendarList")
        calendars = result.get("items", [])
        return {"calendars": calendars, "total": len(calendars)}

    async def _list_calendar_events(self, args: ListCalendarEventsArgs) -> dict[str, Any]:
        """List events in a time range.

        The range defaults to now through one week from now.
        """
        client = await self.manager.authenticate(args.session_id)

        now = datetime.now(timezone.utc)
        time_min = args.time_min or _rfc3339(now)
        time_max = args.time_max or _rfc3339(now + DEFAULT_EVENT_WINDOW)

        result = await client.request(
            "GET",
            f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}/events",
            params={
                "timeMin": time_min,
                "timeMax": time_max,
                "maxResults": args.max_results,
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        events = result.get("items", [])
        return {
            "events": events,
            "total": len(events),
            "calendar_id": args.calendar_id,
            "time_range": {"time_min": time_min, "time_max": time_max},
        }

    async def _create_calendar_event(self, args: CreateCalendarEventArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        event = await client.request(
            "POST",
            f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}/events",
            json_data=args.event,
        )
        return {"event": event}

    async def _update_calendar_event(self, args: UpdateCalendarEventArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        event = await client.request(
            "PATCH",
            f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}"
            f"/events/{_segment(args.event_id)}",
            json_data=args.event,
        )
        return {"event": event}

    async def _delete_calendar_event(self, args: DeleteCalendarEventArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        await client.delete(
            f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}"
            f"/events/{_segment(args.event_id)}"
        )
        return {"status": "deleted", "calendar_id": args.calendar_id, "event_id": args.event_id}

    async def _get_calendar(self, args: CalendarArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        calendar = await client.request(
            "GET", f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}"
        )
        return {"calendar": calendar}

    async def _create_calendar(self, args: CreateCalendarArgs) -> dict[str, Any]:
        """Create a secondary calendar.

        Raises:
            InvalidRequest: If the calendar resource has no summary.
        """
        if not args.calendar.get("summary"):
            raise InvalidRequest("Calendar summary is required")
        client = await self.manager.authenticate(args.session_id)
        calendar = await client.request(
            "POST", f"{CALENDAR_API_BASE}/calendars", json_data=args.calendar
        )
        logger.info("Created calendar %s", calendar.get("id"))
        return {"calendar": calendar}

    async def _update_calendar(self, args: UpdateCalendarArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        calendar = await client.request(
            "PATCH",
            f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}",
            json_data=args.calendar,
        )
        return {"calendar": calendar}

    async def _delete_calendar(self, args: CalendarArgs) -> dict[str, Any]:
        """Delete a secondary calendar.

        Raises:
            InvalidRequest: If asked to delete the primary calendar.
        """
        if args.calendar_id == "primary":
            raise InvalidRequest("Cannot delete the primary calendar")
        client = await self.manager.authenticate(args.session_id)
        await client.delete(f"{CALENDAR_API_BASE}/calendars/{_segment(args.calendar_id)}")
        logger.info("Deleted calendar %s", args.calendar_id)
        return {"status": "deleted", "calendar_id": args.calendar_id}

    # =========================================================================
    # Drive
    # =========================================================================

    async def _list_drive_files(self, args: ListDriveFilesArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        params: dict[str, Any] = {"pageSize": args.page_size, "fields": DRIVE_FILE_FIELDS}
        if args.query:
            params["q"] = args.query
        result = await client.request("GET", f"{DRIVE_API_BASE}/files", params=params)
        files = result.get("files", [])
        return {"files": files, "total": len(files)}

    async def _get_drive_file(self, args: DriveFileArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        file = await client.request(
            "GET",
            f"{DRIVE_API_BASE}/files/{_segment(args.file_id)}",
            params={"fields": DRIVE_FILE_DETAIL_FIELDS},
        )
        return {"file": file}

    async def _create_drive_file(self, args: CreateDriveFileArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        file = await client.request("POST", f"{DRIVE_API_BASE}/files", json_data=args.file)
        return {"file": file}

    async def _upload_drive_file(self, args: UploadDriveFileArgs) -> dict[str, Any]:
        """Upload a local file to Drive with a multipart request.

        The file name defaults to the local file's name. The content type is
        guessed from the extension.

        Args:
            args: Local path and optional Drive metadata.

        Returns:
            The created Drive file.

        Raises:
            InvalidRequest: If the path is not a readable file.
        """
        path = Path(args.file_path).expanduser()
        if not path.is_file():
            raise InvalidRequest(f"File not found: {args.file_path}")

        client = await self.manager.authenticate(args.session_id)
        content = await asyncio.to_thread(path.read_bytes)
        metadata = {"name": path.name, **args.metadata}
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        boundary = uuid.uuid4().hex
        body = b"".join(
            [
                f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode(),
                json.dumps(metadata).encode(),
                f"\r\n--{boundary}\r\nContent-Type: {content_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{boundary}--\r\n".encode(),
            ]
        )

        response = await client.raw_request(
            "POST",
            f"{DRIVE_UPLOAD_API_BASE}/files",
            params={"uploadType": "multipart", "fields": DRIVE_FILE_DETAIL_FIELDS},
            content=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        file = response.json()
        logger.info("Uploaded %s (%d bytes) as %s", path, len(content), file.get("id"))
        return {"status": "uploaded", "file": file}

    async def _download_drive_file(self, args: DownloadDriveFileArgs) -> dict[str, Any]:
        """Download a Drive file's content to a local path.

        Raises:
            InvalidRequest: If the destination directory does not exist.
        """
        destination = Path(args.destination_path).expanduser()
        if not destination.parent.is_dir():
            raise InvalidRequest(f"Destination directory not found: {destination.parent}")

        client = await self.manager.authenticate(args.session_id)
        response = await client.raw_request(
            "GET",
            f"{DRIVE_API_BASE}/files/{_segment(args.file_id)}",
            params={"alt": "media"},
        )
        content = response.content
        await asyncio.to_thread(destination.write_bytes, content)
        logger.info("Downloaded %s to %s (%d bytes)", args.file_id, destination, len(content))
        return {
            "status": "downloaded",
            "file_id": args.file_id,
            "destination_path": str(destination),
            "size": len(content),
        }

    async def _delete_drive_file(self, args: DriveFileArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        await client.delete(f"{DRIVE_API_BASE}/files/{_segment(args.file_id)}")
        return {"status": "deleted", "file_id": args.file_id}

    # =========================================================================
    # Docs
    # =========================================================================

    async def _get_google_doc(self, args: GetDocArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        doc = await client.request("GET", f"{DOCS_API_BASE}/documents/{_segment(args.doc_id)}")
        return {"doc": doc}

    async def _list_google_docs(self, args: ListFilesArgs) -> dict[str, Any]:
        return await self._list_drive_by_mime_type(args, DOCS_MIME_TYPE)

    # =========================================================================
    # Sheets
    # =========================================================================

    async def _get_google_sheet(self, args: GetSheetArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        sheet = await client.request(
            "GET", f"{SHEETS_API_BASE}/spreadsheets/{_segment(args.spreadsheet_id)}"
        )
        return {"sheet": sheet}

    async def _list_google_sheets(self, args: ListFilesArgs) -> dict[str, Any]:
        return await self._list_drive_by_mime_type(args, SHEETS_MIME_TYPE)

    async def _create_google_sheet(self, args: CreateSheetArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        sheet = await client.request(
            "POST", f"{SHEETS_API_BASE}/spreadsheets", json_data=args.sheet
        )
        return {"sheet": sheet}

    async def _update_google_sheet(self, args: UpdateSheetArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        response = await client.request(
            "POST",
            f"{SHEETS_API_BASE}/spreadsheets/{_segment(args.spreadsheet_id)}:batchUpdate",
            json_data={"requests": args.requests},
        )
        return {"response": response}

    async def _delete_google_sheet(self, args: GetSheetArgs) -> dict[str, Any]:
        # The Sheets API has no delete; spreadsheets are Drive files
        client = await self.manager.authenticate(args.session_id)
        await client.delete(f"{DRIVE_API_BASE}/files/{_segment(args.spreadsheet_id)}")
        return {"status": "deleted", "spreadsheet_id": args.spreadsheet_id}

    # =========================================================================
    # Slides
    # =========================================================================

    async def _get_google_slide(self, args: GetPresentationArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        presentation = await client.request(
            "GET", f"{SLIDES_API_BASE}/presentations/{_segment(args.presentation_id)}"
        )
        return {"presentation": presentation}

    async def _list_google_slides(self, args: ListFilesArgs) -> dict[str, Any]:
        return await self._list_drive_by_mime_type(args, SLIDES_MIME_TYPE)

    async def _create_google_slide(self, args: CreatePresentationArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        presentation = await client.request(
            "POST", f"{SLIDES_API_BASE}/presentations", json_data=args.presentation
        )
        return {"presentation": presentation}

    async def _update_google_slide(self, args: UpdatePresentationArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        response = await client.request(
            "POST",
            f"{SLIDES_API_BASE}/presentations/{_segment(args.presentation_id)}:batchUpdate",
            json_data={"requests": args.requests},
        )
        return {"response": response}

    async def _delete_google_slide(self, args: GetPresentationArgs) -> dict[str, Any]:
        client = await self.manager.authenticate(args.session_id)
        await client.delete(f"{DRIVE_API_BASE}/files/{_segment(args.presentation_id)}")
        return {"status": "deleted", "presentation_id": args.presentation_id}

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main() -> None:
    """Entry point for the stdio Google Workspace MCP server."""
    configure_logging()
    server = GoogleWorkspaceServer(load_settings())
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
