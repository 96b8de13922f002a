"""
ElevationReader: coordinate -> elevation over a remote, lazily cached tile set.

Thread-safe. Fetching and opening a tile is serialized per tile identifier
through a KeyedLock, so each tile is downloaded and opened at most once per
reader. Sampling an opened tile happens outside the lock.
"""

import functools
import logging
import math
import os
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ..constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_INTERPOLATION,
    DEFAULT_LOCK_STRIPES,
    DEFAULT_MAX_WORKERS,
    ErrorMessages,
)
from ..exceptions import EvaluationError, PointOutsideDataError, ReaderClosedError
from .cache_store import TileCacheStore
from .fetcher import TileFetcher, UrlOpener, fetch_manifest, iter_url, normalize_base_url
from .handle_cache import TileHandleCache
from .keyed_lock import KeyedLock
from .raster_source import GeoTiffRasterSource, RasterSource
from .registry import TileRegistry

logger = logging.getLogger(__name__)


class ElevationReader:
    """Reads elevation values from tiles listed in a TileRegistry."""

    def __init__(
        self,
        registry: TileRegistry,
        fetcher: TileFetcher,
        raster_source: RasterSource | None = None,
        lock_stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._source = raster_source if raster_source is not None else GeoTiffRasterSource()
        self._locks = KeyedLock(lock_stripes)
        self._handles: TileHandleCache[Any] = TileHandleCache()
        self._closed = False

        self._stats_lock = threading.Lock()
        self._lookups = 0
        self._misses = 0
        self._opens = 0

    @property
    def registry(self) -> TileRegistry:
        return self._registry

    @property
    def cache_store(self) -> TileCacheStore:
        return self._fetcher.store

    @property
    def base_url(self) -> str:
        return self._fetcher.base_url

    @property
    def closed(self) -> bool:
        return self._closed

    def lookup_tile(self, x: float, y: float) -> str | None:
        """Identifier of the tile covering (x, y), or None. No I/O."""
        return self._registry.lookup(x, y)

    def is_tile_open(self, identifier: str) -> bool:
        return identifier in self._handles

    def get_value_at(self, x: float, y: float) -> float:
        """
        Elevation at (x, y).

        Returns:
            The sampled value, or NaN when no tile covers the coordinate

        Raises:
            NetworkError, LocalStorageError: if the tile cannot be fetched
            RasterFormatError: if the tile cannot be opened
            EvaluationError: if the tile's data does not cover a point its
                index entry claims to cover
            ReaderClosedError: after close()
        """
        return self.sample(x, y)[0]

    def sample(self, x: float, y: float) -> tuple[float, str | None]:
        """Like get_value_at(), also returning the identifier of the sampled tile."""
        if self._closed:
            raise ReaderClosedError(ErrorMessages.READER_CLOSED)

        identifier = self._registry.lookup(x, y)
        with self._stats_lock:
            self._lookups += 1
            if identifier is None:
                self._misses += 1
        if identifier is None:
            return math.nan, None

        with self._locks.locked(identifier):
            handle = self._handles.get_or_open(identifier, lambda: self._open_tile(identifier))

        try:
            return self._source.evaluate(handle, x, y), identifier
        except PointOutsideDataError as e:
            raise EvaluationError(
                ErrorMessages.EVALUATION_MISMATCH.format(identifier, x, y, e)
            ) from e

    def get_values_at(
        self,
        points: Sequence[Sequence[float]],
        max_workers: int | None = DEFAULT_MAX_WORKERS,
    ) -> list[float]:
        """Elevations for many (x, y) points, looked up on a thread pool.

        Results keep the order of ``points``. The first failing lookup raises.
        """
        if len(points) == 0:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda p: self.get_value_at(p[0], p[1]), points))

    def stats(self) -> dict[str, int]:
        """Counters since the reader was created."""
        with self._stats_lock:
            return {
                "tiles_indexed": len(self._registry),
                "tiles_open": len(self._handles),
                "lookups": self._lookups,
                "misses": self._misses,
                "opens": self._opens,
                "downloads": self._fetcher.downloads,
            }

    def close(self) -> None:
        """Release every open tile. Idempotent; callers must stop querying first."""
        if self._closed:
            return
        self._closed = True
        self._handles.close_all()
        logger.debug(f"Closed reader for {self.base_url}")

    def _open_tile(self, identifier: str) -> Any:
        path = self._fetcher.ensure_cached(identifier)
        handle = self._source.open(path)
        with self._stats_lock:
            self._opens += 1
        return handle

    def __enter__(self) -> "ElevationReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_reader(
    base_url: str | os.PathLike[str],
    cache_dir: str | os.PathLike[str] | None = None,
    raster_source: RasterSource | None = None,
    interpolation: str = DEFAULT_INTERPOLATION,
    lock_stripes: int = DEFAULT_LOCK_STRIPES,
    timeout: float | None = DEFAULT_HTTP_TIMEOUT,
    opener: UrlOpener | None = None,
) -> ElevationReader:
    """
    Open a reader over the tile set at ``base_url``.

    Fetches and indexes ``<base_url>/index.list.gz`` immediately. Tiles are
    cached under ``cache_dir`` (default: system temp dir + ``dem``).

    Args:
        base_url: http(s) or file URL of the tile set, or a local directory
        cache_dir: Local cache directory
        raster_source: Tile opener/sampler (default GeoTiffRasterSource)
        interpolation: Sampling method for the default raster source
        lock_stripes: Size of the per-tile lock table
        timeout: Socket timeout for HTTP requests, in seconds
        opener: URL-fetch primitive (default: requests / local files)

    Raises:
        NetworkError: if the manifest cannot be fetched
        ManifestFormatError: if the manifest has no usable entry
        LocalStorageError: if the cache directory cannot be created
    """
    base = normalize_base_url(base_url)
    if opener is None:
        opener = functools.partial(iter_url, timeout=timeout)
    if raster_source is None:
        raster_source = GeoTiffRasterSource(interpolation)

    store = TileCacheStore(cache_dir)
    registry = fetch_manifest(base, opener)
    fetcher = TileFetcher(base, store, opener)
    logger.info(f"Opened tile set {base} ({len(registry)} tiles, cache {store.directory})")
    return ElevationReader(registry, fetcher, raster_source, lock_stripes)
