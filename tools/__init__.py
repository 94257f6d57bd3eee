"""MCP tool surface for the performance advisor."""
