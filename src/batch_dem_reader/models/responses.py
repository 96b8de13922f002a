"""
Response models for batch-dem-reader tools.

All tool responses are Pydantic models for type safety and consistent API.
Elevations without data are reported as null.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


def _fmt_elevation(value: float | None) -> str:
    return "no data" if value is None else f"{value:.1f}"


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class PointElevationResponse(BaseModel):
    """Response model for single-point elevation query."""

    model_config = ConfigDict(extra="forbid")

    x: float = Field(..., description="X (easting / longitude) of the query point")
    y: float = Field(..., description="Y (northing / latitude) of the query point")
    elevation: float | None = Field(..., description="Elevation, null when no tile covers the point")
    tile: str | None = Field(None, description="Identifier of the tile that was sampled")
    interpolation: str = Field(..., description="Interpolation method used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Elevation at ({self.x:.6f}, {self.y:.6f}): {_fmt_elevation(self.elevation)}",
            f"Tile: {self.tile or 'none'}",
            f"Interpolation: {self.interpolation}",
        ]
        return "\n".join(lines)


class PointInfo(BaseModel):
    """Elevation data for a single point in a multi-point query."""

    model_config = ConfigDict(extra="forbid")

    x: float = Field(..., description="X (easting / longitude)")
    y: float = Field(..., description="Y (northing / latitude)")
    elevation: float | None = Field(..., description="Elevation, null when no data")


class MultiPointResponse(BaseModel):
    """Response model for multi-point elevation query."""

    model_config = ConfigDict(extra="forbid")

    point_count: int = Field(..., description="Number of points queried", ge=1)
    points: list[PointInfo] = Field(..., description="Elevation results per point")
    elevation_range: list[float] | None = Field(
        None, description="[min, max] elevation across points with data"
    )
    missing_count: int = Field(0, description="Number of points without data", ge=0)
    interpolation: str = Field(..., description="Interpolation method used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        if self.elevation_range:
            elev_min, elev_max = self.elevation_range
            range_text = f"Range: {elev_min:.1f} to {elev_max:.1f}"
        else:
            range_text = "Range: no data"
        lines = [
            f"Elevation for {self.point_count} point(s)",
            f"Interpolation: {self.interpolation}",
            range_text,
            f"Without data: {self.missing_count}",
            "",
        ]
        for p in self.points:
            lines.append(f"  ({p.x:.6f}, {p.y:.6f}): {_fmt_elevation(p.elevation)}")
        return "\n".join(lines)


class TileLookupResponse(BaseModel):
    """Response model for coordinate -> tile lookup."""

    model_config = ConfigDict(extra="forbid")

    x: float = Field(..., description="X of the query point")
    y: float = Field(..., description="Y of the query point")
    tile: str | None = Field(None, description="Covering tile identifier, null if none")
    bounds: list[float] | None = Field(
        None, description="Indexed tile bounds [min_x, min_y, max_x, max_y]"
    )
    cached: bool = Field(False, description="Whether the tile is in the local cache")
    open: bool = Field(False, description="Whether the tile is open in memory")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        if self.tile is None:
            return f"No tile covers ({self.x:.6f}, {self.y:.6f})"
        bounds = ", ".join(f"{b:.6f}" for b in self.bounds or [])
        lines = [
            f"Tile: {self.tile}",
            f"Bounds: [{bounds}]",
            f"Cached: {'yes' if self.cached else 'no'}",
            f"Open: {'yes' if self.open else 'no'}",
        ]
        return "\n".join(lines)


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="batch-dem-reader", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    base_url: str | None = Field(None, description="Configured tile set base URL")
    cache_dir: str | None = Field(None, description="Local tile cache directory")
    interpolation: str = Field(..., description="Interpolation method")
    reader_open: bool = Field(False, description="Whether the tile index has been loaded")
    tiles_indexed: int = Field(0, description="Tiles listed in the manifest", ge=0)
    tiles_open: int = Field(0, description="Tiles open in memory", ge=0)
    lookups: int = Field(0, description="Elevation lookups served", ge=0)
    misses: int = Field(0, description="Lookups outside every tile", ge=0)
    opens: int = Field(0, description="Tiles opened", ge=0)
    downloads: int = Field(0, description="Tiles downloaded", ge=0)

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tile set: {self.base_url or 'not configured'}",
            f"Cache: {self.cache_dir or 'default'}",
            f"Interpolation: {self.interpolation}",
        ]
        if self.reader_open:
            lines.extend(
                [
                    f"Tiles: {self.tiles_indexed} indexed, {self.tiles_open} open",
                    f"Lookups: {self.lookups} ({self.misses} without data)",
                    f"Downloads: {self.downloads}, opens: {self.opens}",
                ]
            )
        else:
            lines.append("Index: not loaded")
        return "\n".join(lines)
