"""Input models for the MCP tools.

Each tool's arguments are validated against a pydantic model at the tool
boundary, and the model's JSON schema is published as the tool's inputSchema.
"""

from typing import Any

from mcp.types import Tool
from pydantic import BaseModel, Field


class SessionArgs(BaseModel):
    """Arguments shared by every tool."""

    session_id: str | None = Field(
        default=None,
        description="Session ID for authentication (defaults to the configured session)",
    )


# =============================================================================
# Gmail
# =============================================================================


class SearchGmailArgs(SessionArgs):
    query: str = Field(..., description="Search query for Gmail (Gmail search syntax)")
    max_results: int = Field(default=5, ge=1, le=100, description="Maximum number of results")


class SendGmailDraftArgs(SessionArgs):
    draft_id: str = Field(..., min_length=1, description="ID of the draft to send")


# =============================================================================
# Calendar
# =============================================================================


class CalendarArgs(SessionArgs):
    calendar_id: str = Field(default="primary", description="Calendar ID (default: 'primary')")


class ListCalendarEventsArgs(CalendarArgs):
    time_min: str | None = Field(
        default=None, description="Start time in RFC3339 format (default: now)"
    )
    time_max: str | None = Field(
        default=None, description="End time in RFC3339 format (default: one week from now)"
    )
    max_results: int = Field(default=5, ge=1, le=2500, description="Maximum number of events")


class CreateCalendarEventArgs(CalendarArgs):
    event: dict[str, Any] = Field(..., description="Event resource (summary, start, end, ...)")


class UpdateCalendarEventArgs(CalendarArgs):
    event_id: str = Field(..., min_length=1, description="The ID of the event to update")
    event: dict[str, Any] = Field(..., description="Event fields to update")


class DeleteCalendarEventArgs(CalendarArgs):
    event_id: str = Field(..., min_length=1, description="The ID of the event to delete")


class UpdateCalendarArgs(CalendarArgs):
    calendar: dict[str, Any] = Field(
        ..., description="Calendar fields to update (summary, description, timeZone)"
    )


class CreateCalendarArgs(SessionArgs):
    calendar: dict[str, Any] = Field(
        ..., description="Calendar resource, e.g. {summary, description, timeZone}"
    )


# =============================================================================
# Drive
# =============================================================================


class ListDriveFilesArgs(SessionArgs):
    query: str | None = Field(default=None, description="Drive search query (optional)")
    page_size: int = Field(default=10, ge=1, le=1000, description="Maximum number of files")


class DriveFileArgs(SessionArgs):
    file_id: str = Field(..., min_length=1, description="ID of the file in Google Drive")


class UploadDriveFileArgs(SessionArgs):
    file_path: str = Field(..., min_length=1, description="Path to the file on disk")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="File metadata, e.g. {name, parents}"
    )


class DownloadDriveFileArgs(DriveFileArgs):
    destination_path: str = Field(
        ..., min_length=1, description="Path to save the downloaded file"
    )


class CreateDriveFileArgs(SessionArgs):
    file: dict[str, Any] = Field(..., description="File metadata, e.g. {name, mimeType, parents}")


# =============================================================================
# Docs, Sheets, Slides
# =============================================================================


class ListFilesArgs(SessionArgs):
    page_size: int = Field(default=10, ge=1, le=1000, description="Maximum number of files")


class GetDocArgs(SessionArgs):
    doc_id: str = Field(..., min_length=1, description="Google Doc ID")


class GetSheetArgs(SessionArgs):
    spreadsheet_id: str = Field(..., min_length=1, description="Spreadsheet ID")


class CreateSheetArgs(SessionArgs):
    sheet: dict[str, Any] = Field(
        default_factory=dict, description="Spreadsheet resource, e.g. {properties: {title}}"
    )


class UpdateSheetArgs(GetSheetArgs):
    requests: list[dict[str, Any]] = Field(..., min_length=1, description="batchUpdate requests")


class GetPresentationArgs(SessionArgs):
    presentation_id: str = Field(..., min_length=1, description="Presentation ID")


class CreatePresentationArgs(SessionArgs):
    presentation: dict[str, Any] = Field(
        default_factory=dict, description="Presentation resource, e.g. {title}"
    )


class UpdatePresentationArgs(GetPresentationArgs):
    requests: list[dict[str, Any]] = Field(..., min_length=1, description="batchUpdate requests")


TOOL_ARGS: dict[str, tuple[str, type[SessionArgs]]] = {
    # Gmail
    "get_user_profile": ("Get the authenticated user's Google profile", SessionArgs),
    "search_gmail": ("Search Gmail messages", SearchGmailArgs),
    "list_gmail_labels": ("List Gmail labels", SessionArgs),
    "send_gmail_draft": ("Send an existing Gmail draft", SendGmailDraftArgs),
    # Calendar
    "list_google_calendars": ("List calendars accessible by the user", SessionArgs),
    "list_calendar_events": (
        "List events on a Google Calendar within a time range",
        ListCalendarEventsArgs,
    ),
    "create_calendar_event": (
        "Create a new event on a Google Calendar",
        CreateCalendarEventArgs,
    ),
    "update_calendar_event": (
        "Update an existing event on a Google Calendar",
        UpdateCalendarEventArgs,
    ),
    "delete_calendar_event": (
        "Delete an existing event on a Google Calendar",
        DeleteCalendarEventArgs,
    ),
    "get_calendar": ("Get a Google Calendar's metadata", CalendarArgs),
    "create_calendar": ("Create a secondary Google Calendar", CreateCalendarArgs),
    "update_calendar": ("Update a Google Calendar's metadata", UpdateCalendarArgs),
    "delete_calendar": ("Delete a secondary Google Calendar", CalendarArgs),
    # Drive
    "list_drive_files": ("List files in Google Drive", ListDriveFilesArgs),
    "get_drive_file": ("Get a file's metadata from Google Drive by file ID", DriveFileArgs),
    "create_drive_file": (
        "Create a file in Google Drive (metadata only, no content)",
        CreateDriveFileArgs,
    ),
    "upload_drive_file": (
        "Upload a file from disk to Google Drive (with content and metadata)",
        UploadDriveFileArgs,
    ),
    "download_drive_file": ("Download a file from Google Drive to disk", DownloadDriveFileArgs),
    "delete_drive_file": ("Delete a file from Google Drive by file ID", DriveFileArgs),
    # Docs
    "get_google_doc": ("Get a Google Doc by ID", GetDocArgs),
    "list_google_docs": ("List Google Docs", ListFilesArgs),
    # Sheets
    "get_google_sheet": ("Get a Google Sheet by ID", GetSheetArgs),
    "list_google_sheets": ("List Google Sheets", ListFilesArgs),
    "create_google_sheet": ("Create a new Google Sheet", CreateSheetArgs),
    "update_google_sheet": (
        "Update a Google Sheet using batchUpdate requests",
        UpdateSheetArgs,
    ),
    "delete_google_sheet": ("Delete a Google Sheet by ID", GetSheetArgs),
    # Slides
    "get_google_slide": ("Get a Google Slides presentation by ID", GetPresentationArgs),
    "list_google_slides": ("List Google Slides presentations", ListFilesArgs),
    "create_google_slide": ("Create a new Google Slides presentation", CreatePresentationArgs),
    "update_google_slide": (
        "Update a Google Slides presentation using batchUpdate requests",
        UpdatePresentationArgs,
    ),
    "delete_google_slide": ("Delete a Google Slides presentation by ID", GetPresentationArgs),
}


def build_tools() -> list[Tool]:
    """Build the MCP tool list from the argument models."""
    return [
        Tool(name=name, description=description, inputSchema=model.model_json_schema())
        for name, (description, model) in TOOL_ARGS.items()
    ]
