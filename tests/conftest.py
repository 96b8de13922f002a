"""Shared test fixtures for batch-dem-reader."""

import bz2
import gzip
import threading
import time
from pathlib import Path

import numpy as np
import pytest
from unittest.mock import AsyncMock, MagicMock

TILE_A = "tileA.tif.bz2"
TILE_B = "tileB.tif.bz2"
TILE_C = "tileC.tif.bz2"

MANIFEST_LINES = [
    "# identifier,min_x,min_y,max_x,max_y",
    f"{TILE_A},10.0,20.0,11.0,21.0",
    f"{TILE_B},11.0,20.0,12.0,21.0",
    # indexed wider than its data (12..13): points in 13..14 hit the index only
    f"{TILE_C},12.0,20.0,14.0,21.0",
]


def write_geotiff(
    path: Path,
    data: np.ndarray,
    west: float,
    north: float,
    res: float,
    nodata: float | None = None,
) -> Path:
    """Write a float32 GeoTIFF in EPSG:4326. 3D arrays are written band by band."""
    import rasterio
    from rasterio.transform import from_origin

    arr = np.asarray(data, dtype=np.float32)
    if arr.ndim == 2:
        arr = arr[np.newaxis, :]

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=arr.shape[1],
        width=arr.shape[2],
        count=arr.shape[0],
        dtype="float32",
        crs="EPSG:4326",
        transform=from_origin(west, north, res, res),
        nodata=nodata,
    ) as dst:
        dst.write(arr)
    return path


def gradient(rows: int = 4, cols: int = 4) -> np.ndarray:
    """Grid whose value only varies along x: 100 + 10 * column."""
    return np.tile(100.0 + 10.0 * np.arange(cols, dtype=np.float32), (rows, 1))


class FakeRemote:
    """In-memory tile set standing in for the URL-fetch primitive."""

    def __init__(self, base_url: str = "https://dem.example.com/tiles/") -> None:
        self.base_url = base_url
        self.files: dict[str, bytes] = {}
        self.requests: list[str] = []
        self.delay = 0.0
        self._failures: dict[str, list[BaseException]] = {}
        self._lock = threading.Lock()

    def url(self, name: str) -> str:
        return self.base_url + name

    def add(self, name: str, payload: bytes) -> None:
        self.files[self.url(name)] = payload

    def add_manifest(self, lines: list[str]) -> None:
        self.add("index.list.gz", gzip.compress("\n".join(lines).encode("utf-8")))

    def add_tile(self, name: str, raw: bytes) -> None:
        self.add(name, bz2.compress(raw))

    def fail_midway(self, name: str, exc: BaseException, times: int = 1) -> None:
        """Make the next ``times`` fetches of ``name`` break after the first chunk."""
        self._failures[self.url(name)] = [exc] * times

    def count(self, name: str) -> int:
        with self._lock:
            return self.requests.count(self.url(name))

    def __call__(self, url: str):
        with self._lock:
            self.requests.append(url)
            failures = self._failures.get(url)
            failure = failures.pop() if failures else None
        return self._stream(url, failure)

    def _stream(self, url: str, failure: BaseException | None):
        if self.delay:
            time.sleep(self.delay)
        if url not in self.files:
            raise FileNotFoundError(url)
        payload = self.files[url]
        half = len(payload) // 2
        yield payload[:half]
        if failure is not None:
            raise failure
        yield payload[half:]


@pytest.fixture
def geotiff_factory(tmp_path):
    """Write GeoTIFFs into a scratch directory and return their paths."""
    tif_dir = tmp_path / "tifs"
    tif_dir.mkdir()

    def factory(name, data, west=10.0, north=21.0, res=0.25, nodata=None):
        return write_geotiff(tif_dir / name, data, west, north, res, nodata)

    return factory


@pytest.fixture
def tile_payloads(geotiff_factory):
    """Raw (uncompressed) GeoTIFF bytes of the three test tiles."""
    a = geotiff_factory("a.tif", gradient(), west=10.0)
    b = geotiff_factory("b.tif", np.full((4, 4), 500.0), west=11.0)
    c = geotiff_factory("c.tif", np.full((4, 4), 42.0), west=12.0)
    return {TILE_A: a.read_bytes(), TILE_B: b.read_bytes(), TILE_C: c.read_bytes()}


@pytest.fixture
def remote(tile_payloads):
    """FakeRemote serving the manifest and all test tiles."""
    fake = FakeRemote()
    fake.add_manifest(MANIFEST_LINES)
    for name, raw in tile_payloads.items():
        fake.add_tile(name, raw)
    return fake


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def reader(remote, cache_dir):
    """ElevationReader over the fake remote."""
    from batch_dem_reader.core.reader import open_reader

    r = open_reader(remote.base_url, cache_dir=cache_dir, opener=remote)
    yield r
    r.close()


@pytest.fixture
def tile_dir(tmp_path, tile_payloads):
    """The test tile set laid out as a local directory (served via file://)."""
    root = tmp_path / "tileset"
    root.mkdir()
    (root / "index.list.gz").write_bytes(gzip.compress("\n".join(MANIFEST_LINES).encode("utf-8")))
    for name, raw in tile_payloads.items():
        (root / name).write_bytes(bz2.compress(raw))
    return root


@pytest.fixture
def mock_manager():
    """DEMManager-shaped mock with async query methods."""
    manager = MagicMock()
    manager.interpolation = "bilinear"
    manager.get_point = AsyncMock()
    manager.get_points = AsyncMock()
    manager.lookup_tile = AsyncMock()
    manager.status = MagicMock()
    return manager


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp
