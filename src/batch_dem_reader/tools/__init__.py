"""MCP tool modules for batch-dem-reader."""
