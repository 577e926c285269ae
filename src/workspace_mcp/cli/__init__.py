"""Command-line interface for workspace-mcp."""
