"""
Discovery tools: tile lookup and server status.

These tools never download tiles. The first call may load the tile index.
"""

import logging

from ...constants import ServerConfig, SuccessMessages
from ...models.responses import (
    ErrorResponse,
    StatusResponse,
    TileLookupResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def dem_lookup_tile(x: float, y: float, output_mode: str = "json") -> str:
        """Find which tile of the tile set covers a point, without downloading it.

        Args:
            x: Easting or longitude
            y: Northing or latitude
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Tile identifier, indexed bounds, and cache state
        """
        try:
            result = await manager.lookup_tile(x=x, y=y)

            if result.tile is None:
                message = SuccessMessages.TILE_NOT_FOUND
            else:
                message = SuccessMessages.TILE_FOUND.format(result.tile)

            response = TileLookupResponse(
                x=x,
                y=y,
                tile=result.tile,
                bounds=result.bounds,
                cached=result.cached,
                open=result.open,
                message=message,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_lookup_tile failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_status(output_mode: str = "json") -> str:
        """Get server status: tile set, cache directory, and lookup counters.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                **manager.status(),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
