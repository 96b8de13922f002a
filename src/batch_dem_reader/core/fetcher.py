"""
Remote retrieval of the tile manifest and of bzip2-compressed tiles.

All functions are synchronous and blocking. No retries are attempted: a
failed fetch surfaces to the caller, and the next lookup of the same tile
starts from scratch.
"""

import bz2
import functools
import gzip
import logging
import os
import threading
import zlib
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote, urljoin, urlparse
from urllib.request import url2pathname

import requests

from ..constants import CHUNK_SIZE, DEFAULT_HTTP_TIMEOUT, INDEX_FILENAME, ErrorMessages
from ..exceptions import DEMReaderError, LocalStorageError, ManifestFormatError, NetworkError
from .cache_store import TileCacheStore
from .registry import TileRegistry

logger = logging.getLogger(__name__)

# url -> iterable of raw (still compressed) byte chunks
UrlOpener = Callable[[str], Iterable[bytes]]


def iter_url(
    url: str,
    timeout: float | None = DEFAULT_HTTP_TIMEOUT,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[bytes]:
    """
    Stream the bytes of a URL.

    ``http``/``https`` go through requests; ``file`` URLs are read from disk.

    Raises:
        NetworkError: on unsupported schemes
        requests.RequestException / OSError: on transfer failures
    """
    parsed = urlparse(url)

    if parsed.scheme == "file":
        with open(url2pathname(parsed.path), "rb") as fh:
            yield from iter(functools.partial(fh.read, chunk_size), b"")
        return

    if parsed.scheme not in ("http", "https"):
        raise NetworkError(ErrorMessages.UNSUPPORTED_SCHEME.format(parsed.scheme, url))

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        yield from response.iter_content(chunk_size=chunk_size)


def normalize_base_url(base_url: str | os.PathLike[str]) -> str:
    """Return ``base_url`` with a trailing slash; local directories become file URIs."""
    base = os.fspath(base_url)
    if not urlparse(base).scheme:
        base = Path(base).resolve().as_uri()
    if not base.endswith("/"):
        base += "/"
    return base


def resource_url(base_url: str, name: str) -> str:
    return urljoin(base_url, quote(name, safe="/"))


def iter_bz2(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Incrementally decompress a (possibly multi-stream) bzip2 payload.

    Raises:
        OSError: on invalid data
        EOFError: if the payload ends inside a stream
    """
    decompressor = bz2.BZ2Decompressor()
    for chunk in chunks:
        while chunk:
            if decompressor.eof:
                decompressor = bz2.BZ2Decompressor()
            data = decompressor.decompress(chunk)
            if data:
                yield data
            chunk = decompressor.unused_data if decompressor.eof else b""
    if not decompressor.eof:
        raise EOFError(ErrorMessages.TRUNCATED_STREAM)


def fetch_manifest(base_url: str, opener: UrlOpener = iter_url) -> TileRegistry:
    """
    Fetch ``<base>/index.list.gz`` and build the tile registry from it.

    Raises:
        NetworkError: if the manifest cannot be fetched
        ManifestFormatError: if it is not gzip data or holds no usable entry
    """
    url = resource_url(base_url, INDEX_FILENAME)
    logger.info(f"Loading tile index {url}")

    try:
        payload = b"".join(opener(url))
    except DEMReaderError:
        raise
    except (requests.RequestException, OSError) as e:
        raise NetworkError(ErrorMessages.FETCH_FAILED.format(url, e)) from e

    try:
        text = gzip.decompress(payload).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        raise ManifestFormatError(ErrorMessages.CORRUPT_MANIFEST.format(url, e)) from e

    return TileRegistry.build(text.splitlines())


class TileFetcher:
    """Downloads and decompresses tiles into a TileCacheStore."""

    def __init__(
        self,
        base_url: str,
        store: TileCacheStore,
        opener: UrlOpener = iter_url,
    ) -> None:
        self.base_url = normalize_base_url(base_url)
        self.store = store
        self._opener = opener
        self._downloads = 0
        self._count_lock = threading.Lock()

    @property
    def downloads(self) -> int:
        """Number of tiles downloaded by this fetcher."""
        return self._downloads

    def tile_url(self, identifier: str) -> str:
        return resource_url(self.base_url, identifier)

    def ensure_cached(self, identifier: str) -> Path:
        """
        Return the local path of a tile, downloading it first if needed.

        The fast path is a single existence check. Callers must hold the
        per-identifier lock; this method does not guard against concurrent
        downloads of the same tile within the process.

        Raises:
            NetworkError: if the tile cannot be fetched or decompressed
            LocalStorageError: if the tile cannot be written to the cache
        """
        path = self.store.local_path(identifier)
        if path.is_file():
            return path

        url = self.tile_url(identifier)
        logger.info(f"Downloading {url}")
        path = self.store.publish(identifier, lambda sink: self._download(url, sink))
        with self._count_lock:
            self._downloads += 1
        return path

    def _download(self, url: str, sink: BinaryIO) -> None:
        for data in self._read_tile(url):
            try:
                sink.write(data)
            except OSError as e:
                raise LocalStorageError(ErrorMessages.WRITE_FAILED.format(f"cache file for {url}", e)) from e

    def _read_tile(self, url: str) -> Iterator[bytes]:
        try:
            yield from iter_bz2(self._opener(url))
        except DEMReaderError:
            raise
        except (requests.RequestException, OSError, EOFError) as e:
            raise NetworkError(ErrorMessages.FETCH_FAILED.format(url, e)) from e
