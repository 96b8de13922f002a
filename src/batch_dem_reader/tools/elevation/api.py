"""
Elevation tools: single and multi-point elevation lookups.

These tools may perform network I/O: the first lookup inside a tile downloads
and caches that tile.
"""

import logging
import math

from ...constants import SuccessMessages
from ...models.responses import (
    ErrorResponse,
    MultiPointResponse,
    PointElevationResponse,
    PointInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def _or_none(value: float) -> float | None:
    return None if math.isnan(value) else value


def register_elevation_tools(mcp, manager):
    """Register elevation tools with the MCP server."""

    @mcp.tool()
    async def dem_get_elevation(
        x: float,
        y: float,
        output_mode: str = "json",
    ) -> str:
        """Get the elevation at a single point of the configured tile set.

        Coordinates are in the tile set's native coordinate system
        (longitude/latitude for geographic tile sets).

        Args:
            x: Easting or longitude
            y: Northing or latitude
            output_mode: "json" or "text"

        Returns:
            Elevation (null when no tile covers the point) and the tile used
        """
        try:
            result = await manager.get_point(x=x, y=y)
            elevation = _or_none(result.elevation)

            if elevation is None:
                message = SuccessMessages.POINT_NO_DATA
            else:
                message = SuccessMessages.POINT_ELEVATION.format(elevation)

            response = PointElevationResponse(
                x=x,
                y=y,
                elevation=elevation,
                tile=result.tile,
                interpolation=manager.interpolation,
                message=message,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_get_elevation failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_get_elevations(
        points: list[list[float]],
        output_mode: str = "json",
    ) -> str:
        """Get elevations at multiple points in a single request.

        Points are looked up concurrently; each tile is downloaded at most once.

        Args:
            points: List of [x, y] coordinate pairs
            output_mode: "json" or "text"

        Returns:
            Elevation for each point with range statistics
        """
        try:
            result = await manager.get_points(points=points)

            point_infos = [
                PointInfo(x=p[0], y=p[1], elevation=_or_none(e))
                for p, e in zip(points, result.elevations)
            ]

            response = MultiPointResponse(
                point_count=len(points),
                points=point_infos,
                elevation_range=result.elevation_range,
                missing_count=result.missing,
                interpolation=manager.interpolation,
                message=SuccessMessages.POINTS_ELEVATION.format(len(points), result.missing),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_get_elevations failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
