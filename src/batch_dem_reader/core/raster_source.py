"""
Raster source: opens a decompressed tile and samples elevation from it.

The reader only depends on the RasterSource protocol. GeoTiffRasterSource is
the default implementation, reading single-band rasters with rasterio into
memory so that evaluation is a lock-free NumPy lookup.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np
from numpy.typing import NDArray

from ..constants import DEFAULT_INTERPOLATION, INTERPOLATION_METHODS, ErrorMessages
from ..exceptions import PointOutsideDataError, RasterFormatError, ReaderClosedError
from .registry import BoundingBox

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]
Transform = Any  # rasterio.Affine


class RasterSource(Protocol):
    """Collaborator contract used by ElevationReader."""

    def open(self, path: str | os.PathLike[str]) -> Any:
        """Open a local tile file and return a handle."""
        ...

    def evaluate(self, handle: Any, x: float, y: float) -> float:
        """Sample the handle at (x, y); raise PointOutsideDataError outside its data."""
        ...


@dataclass
class TileHandle:
    """A decoded elevation tile held in memory."""

    name: str
    elevation: FloatArray
    transform: Transform
    bounds: BoundingBox
    closed: bool = field(default=False)

    def close(self) -> None:
        self.elevation = np.empty((0, 0), dtype=np.float32)
        self.closed = True


class GeoTiffRasterSource:
    """RasterSource backed by rasterio (GeoTIFF and any other GDAL raster)."""

    def __init__(self, interpolation: str = DEFAULT_INTERPOLATION) -> None:
        if interpolation not in INTERPOLATION_METHODS:
            raise ValueError(
                ErrorMessages.INVALID_INTERPOLATION.format(
                    interpolation, ", ".join(INTERPOLATION_METHODS)
                )
            )
        self.interpolation = interpolation

    def open(self, path: str | os.PathLike[str]) -> TileHandle:
        """
        Read a tile into memory.

        Raises:
            RasterFormatError: if the file is unreadable or not single-band
        """
        import rasterio
        from rasterio.errors import RasterioError

        name = os.fspath(path)
        logger.debug(f"Opening tile {name}")
        try:
            with rasterio.open(name) as src:
                if src.count != 1:
                    raise RasterFormatError(ErrorMessages.BAND_COUNT.format(name, src.count))
                data = src.read(1).astype(np.float32)
                transform = src.transform
                left, bottom, right, top = src.bounds
                nodata = src.nodata
        except RasterioError as e:
            raise RasterFormatError(ErrorMessages.UNREADABLE_TILE.format(name, e)) from e

        # Replace nodata with NaN
        if nodata is not None:
            data[data == nodata] = np.nan

        return TileHandle(
            name=name,
            elevation=data,
            transform=transform,
            bounds=BoundingBox(
                min(left, right), min(bottom, top), max(left, right), max(bottom, top)
            ),
        )

    def evaluate(self, handle: TileHandle, x: float, y: float) -> float:
        """
        Sample elevation at (x, y) in the tile's native coordinates.

        Raises:
            PointOutsideDataError: if (x, y) lies outside the tile's data bounds
        """
        if handle.closed:
            raise ReaderClosedError(ErrorMessages.READER_CLOSED)
        if not handle.bounds.contains(x, y):
            raise PointOutsideDataError(
                ErrorMessages.POINT_OUTSIDE_DATA.format(x, y, handle.bounds.as_list(), handle.name)
            )
        return sample_elevation(handle.elevation, handle.transform, x, y, self.interpolation)


# ---------------------------------------------------------------------------
# Point sampling
# ---------------------------------------------------------------------------


def sample_elevation(
    elevation: FloatArray,
    transform: Transform,
    x: float,
    y: float,
    interpolation: str = DEFAULT_INTERPOLATION,
) -> float:
    """
    Sample elevation at a single point.

    Samples are taken at pixel centres. Points in the outer half pixel of the
    grid are clamped to the edge samples.

    Args:
        elevation: 2D elevation array
        transform: Affine transform
        x: Easting / longitude
        y: Northing / latitude
        interpolation: nearest, bilinear, or cubic

    Returns:
        Elevation value, NaN where the grid holds nodata
    """
    col_f, row_f = ~transform * (x, y)

    if interpolation == "nearest":
        h, w = elevation.shape
        row = min(max(int(math.floor(row_f)), 0), h - 1)
        col = min(max(int(math.floor(col_f)), 0), w - 1)
        return float(elevation[row, col])

    elif interpolation == "bilinear":
        return _bilinear_sample(elevation, row_f - 0.5, col_f - 0.5)

    elif interpolation == "cubic":
        return _cubic_sample(elevation, row_f - 0.5, col_f - 0.5)

    else:
        raise ValueError(
            ErrorMessages.INVALID_INTERPOLATION.format(interpolation, ", ".join(INTERPOLATION_METHODS))
        )


def _bilinear_sample(array: FloatArray, row_f: float, col_f: float) -> float:
    """Bilinear interpolation at fractional pixel-centre coordinates."""
    h, w = array.shape
    row_f = min(max(row_f, 0.0), h - 1.0)
    col_f = min(max(col_f, 0.0), w - 1.0)

    r0, c0 = int(math.floor(row_f)), int(math.floor(col_f))
    r1, c1 = min(r0 + 1, h - 1), min(c0 + 1, w - 1)

    dr = row_f - r0
    dc = col_f - c0

    v00 = array[r0, c0]
    v01 = array[r0, c1]
    v10 = array[r1, c0]
    v11 = array[r1, c1]

    if any(np.isnan(v) for v in [v00, v01, v10, v11]):
        return float("nan")

    val = v00 * (1 - dr) * (1 - dc) + v01 * (1 - dr) * dc + v10 * dr * (1 - dc) + v11 * dr * dc
    return float(val)


def _cubic_sample(array: FloatArray, row_f: float, col_f: float) -> float:
    """Bicubic interpolation at fractional pixel-centre coordinates."""
    from scipy.interpolate import RectBivariateSpline

    r0 = int(math.floor(row_f))
    c0 = int(math.floor(col_f))
    h, w = array.shape

    r_start = max(0, r0 - 1)
    r_end = min(h, r0 + 3)
    c_start = max(0, c0 - 1)
    c_end = min(w, c0 + 3)

    if r_end - r_start < 4 or c_end - c_start < 4:
        return _bilinear_sample(array, row_f, col_f)

    patch = array[r_start:r_end, c_start:c_end]
    if np.any(np.isnan(patch)):
        return _bilinear_sample(array, row_f, col_f)

    rows = np.arange(r_start, r_end, dtype=float)
    cols = np.arange(c_start, c_end, dtype=float)

    spline = RectBivariateSpline(rows, cols, patch, kx=3, ky=3)
    val = spline(row_f, col_f)[0, 0]
    return float(val)
