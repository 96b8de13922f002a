#!/usr/bin/env python3
"""
Async DEM reader MCP Server using chuk-mcp-server

Batch elevation lookups over a remote tile set. Tiles are downloaded on
first use, decompressed into a local cache directory, and kept open in memory.

The tile set is configured through environment variables (see EnvVar).
"""

import logging
import os

from chuk_mcp_server import ChukMCPServer

from .constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_INTERPOLATION,
    DEFAULT_LOCK_STRIPES,
    EnvVar,
    ServerConfig,
)
from .core.dem_manager import DEMManager
from .tools.discovery import register_discovery_tools
from .tools.elevation import register_elevation_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_manager() -> DEMManager:
    """Create the DEM manager from environment variables."""
    timeout = os.environ.get(EnvVar.HTTP_TIMEOUT)
    return DEMManager(
        base_url=os.environ.get(EnvVar.BASE_URL),
        cache_dir=os.environ.get(EnvVar.CACHE_DIR),
        interpolation=os.environ.get(EnvVar.INTERPOLATION, DEFAULT_INTERPOLATION),
        lock_stripes=int(os.environ.get(EnvVar.LOCK_STRIPES, DEFAULT_LOCK_STRIPES)),
        timeout=float(timeout) if timeout else DEFAULT_HTTP_TIMEOUT,
    )


# Create the MCP server instance
mcp = ChukMCPServer(ServerConfig.NAME)

# Create DEM manager instance
manager = build_manager()

# Register all tool modules
register_elevation_tools(mcp, manager)
register_discovery_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    logger.info("Starting DEM reader MCP Server...")
    logger.info(f"Tile set: {manager.base_url or 'not configured'}")
    mcp.run(stdio=True)
