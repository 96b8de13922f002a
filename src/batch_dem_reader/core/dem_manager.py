"""
DEM Manager: async facade over a lazily opened ElevationReader.

Used by the MCP tools. All public async methods wrap the blocking reader via
asyncio.to_thread().
"""

import asyncio
import logging
import math
import threading
from dataclasses import dataclass

from ..constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_INTERPOLATION,
    DEFAULT_LOCK_STRIPES,
    DEFAULT_MAX_WORKERS,
    INTERPOLATION_METHODS,
    ErrorMessages,
)
from .reader import ElevationReader, open_reader

logger = logging.getLogger(__name__)


@dataclass
class PointResult:
    """Result of a single-point elevation query."""

    elevation: float
    tile: str | None


@dataclass
class MultiPointResult:
    """Result of a multi-point elevation query."""

    elevations: list[float]
    elevation_range: list[float] | None
    missing: int


@dataclass
class TileLookupResult:
    """Result of a coordinate -> tile lookup."""

    tile: str | None
    bounds: list[float] | None
    cached: bool
    open: bool


class DEMManager:
    """Central manager owning one ElevationReader per process."""

    def __init__(
        self,
        base_url: str | None = None,
        cache_dir: str | None = None,
        interpolation: str = DEFAULT_INTERPOLATION,
        lock_stripes: int = DEFAULT_LOCK_STRIPES,
        timeout: float | None = DEFAULT_HTTP_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if interpolation not in INTERPOLATION_METHODS:
            raise ValueError(
                ErrorMessages.INVALID_INTERPOLATION.format(
                    interpolation, ", ".join(INTERPOLATION_METHODS)
                )
            )
        self.base_url = base_url
        self.cache_dir = cache_dir
        self.interpolation = interpolation
        self.lock_stripes = lock_stripes
        self.timeout = timeout
        self.max_workers = max_workers

        self._reader: ElevationReader | None = None
        self._reader_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queries (async)
    # ------------------------------------------------------------------

    async def get_point(self, x: float, y: float) -> PointResult:
        """Get elevation at a single point."""
        reader = await asyncio.to_thread(self._get_reader)
        value, tile = await asyncio.to_thread(reader.sample, x, y)
        return PointResult(elevation=value, tile=tile)

    async def get_points(self, points: list[list[float]]) -> MultiPointResult:
        """Get elevations at multiple points."""
        self._validate_points(points)
        reader = await asyncio.to_thread(self._get_reader)

        values = await asyncio.to_thread(reader.get_values_at, points, self.max_workers)

        valid_values = [v for v in values if not math.isnan(v)]
        if valid_values:
            elev_range = [min(valid_values), max(valid_values)]
        else:
            elev_range = None

        return MultiPointResult(
            elevations=values,
            elevation_range=elev_range,
            missing=len(values) - len(valid_values),
        )

    async def lookup_tile(self, x: float, y: float) -> TileLookupResult:
        """Find the tile covering a point without fetching it."""
        reader = await asyncio.to_thread(self._get_reader)
        tile = reader.lookup_tile(x, y)
        if tile is None:
            return TileLookupResult(tile=None, bounds=None, cached=False, open=False)

        envelope = reader.registry.envelope_of(tile)
        cached = await asyncio.to_thread(reader.cache_store.is_cached, tile)
        return TileLookupResult(
            tile=tile,
            bounds=envelope.as_list() if envelope is not None else None,
            cached=cached,
            open=reader.is_tile_open(tile),
        )

    # ------------------------------------------------------------------
    # Status (sync, no I/O)
    # ------------------------------------------------------------------

    def status(self) -> dict:
        """Configuration and counters of the current reader, if opened."""
        reader = self._reader
        counters = reader.stats() if reader is not None and not reader.closed else {}
        return {
            "base_url": reader.base_url if reader is not None else self.base_url,
            "cache_dir": str(reader.cache_store.directory) if reader is not None else self.cache_dir,
            "interpolation": self.interpolation,
            "reader_open": reader is not None and not reader.closed,
            **counters,
        }

    def close(self) -> None:
        with self._reader_lock:
            if self._reader is not None:
                self._reader.close()
                self._reader = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_reader(self) -> ElevationReader:
        """Open the reader on first use (blocking: fetches the manifest)."""
        with self._reader_lock:
            if self._reader is None:
                if not self.base_url:
                    raise ValueError(ErrorMessages.NO_BASE_URL)
                self._reader = open_reader(
                    self.base_url,
                    cache_dir=self.cache_dir,
                    interpolation=self.interpolation,
                    lock_stripes=self.lock_stripes,
                    timeout=self.timeout,
                )
            return self._reader

    @staticmethod
    def _validate_points(points: list[list[float]]) -> None:
        if len(points) == 0:
            raise ValueError(ErrorMessages.EMPTY_POINTS)
        for p in points:
            if len(p) != 2:
                raise ValueError(ErrorMessages.INVALID_POINT.format(p))
