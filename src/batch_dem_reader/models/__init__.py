"""Response models for batch-dem-reader."""

from .responses import (
    ErrorResponse,
    MultiPointResponse,
    PointElevationResponse,
    PointInfo,
    StatusResponse,
    TileLookupResponse,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "PointElevationResponse",
    "PointInfo",
    "MultiPointResponse",
    "TileLookupResponse",
    "StatusResponse",
    "format_response",
]
