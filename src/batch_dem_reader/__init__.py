"""
batch-dem-reader: Batch Elevation Lookups over Remote DEM Tile Sets

Resolves coordinates to elevation samples by locating the covering tile in a
manifest-driven spatial index, downloading and decompressing that tile once
into a local cache, and keeping it open for subsequent lookups.
"""

from .core.reader import ElevationReader, open_reader
from .exceptions import (
    DEMReaderError,
    EvaluationError,
    LocalStorageError,
    ManifestFormatError,
    NetworkError,
    PointOutsideDataError,
    RasterFormatError,
    ReaderClosedError,
)

__all__ = [
    "ElevationReader",
    "open_reader",
    "DEMReaderError",
    "EvaluationError",
    "LocalStorageError",
    "ManifestFormatError",
    "NetworkError",
    "PointOutsideDataError",
    "RasterFormatError",
    "ReaderClosedError",
]
