"""
On-disk tile cache with atomic publish.

A tile file under its final name is always complete: data is streamed into a
``.download`` temporary in the same directory and renamed into place only
after the writer finished successfully.
"""

import logging
import os
import tempfile
import uuid
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from ..constants import COMPRESSED_SUFFIX, DEFAULT_CACHE_SUBDIR, DOWNLOAD_SUFFIX, ErrorMessages
from ..exceptions import DEMReaderError, LocalStorageError

logger = logging.getLogger(__name__)

_TEMP_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def default_cache_dir() -> Path:
    """System temp directory + ``dem``."""
    return Path(tempfile.gettempdir()) / DEFAULT_CACHE_SUBDIR


def local_name(identifier: str) -> str:
    """Relative cache name of a tile: the identifier without its compression suffix."""
    return identifier.removesuffix(COMPRESSED_SUFFIX)


class TileCacheStore:
    """Local directory of decompressed tiles, shared by every reader using it."""

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        self.directory = Path(directory) if directory is not None else default_cache_dir()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalStorageError(ErrorMessages.CACHE_DIR_FAILED.format(self.directory, e)) from e

    def local_path(self, identifier: str) -> Path:
        """Deterministic cache path for a tile identifier.

        Raises:
            LocalStorageError: if the identifier would resolve outside the cache directory
        """
        relative = PurePosixPath(local_name(identifier))
        if (
            relative.is_absolute()
            or not relative.parts
            or any(part in ("", ".", "..") for part in relative.parts)
        ):
            raise LocalStorageError(ErrorMessages.UNSAFE_IDENTIFIER.format(identifier))
        return self.directory.joinpath(*relative.parts)

    def is_cached(self, identifier: str) -> bool:
        return self.local_path(identifier).is_file()

    def cached_files(self) -> list[Path]:
        """Published tiles currently in the cache (temporaries excluded)."""
        return sorted(
            p
            for p in self.directory.rglob("*")
            if p.is_file() and not p.name.endswith(DOWNLOAD_SUFFIX)
        )

    def publish(self, identifier: str, write: Callable[[BinaryIO], None]) -> Path:
        """
        Materialize a tile atomically.

        ``write`` receives a binary file opened on a fresh temporary. If it
        raises, the temporary is removed and the final path is left untouched.
        If another writer published the tile in the meantime, its file is kept.

        Returns:
            Final path of the tile

        Raises:
            LocalStorageError: if the temporary cannot be created, written or renamed
        """
        final = self.local_path(identifier)
        try:
            final.parent.mkdir(parents=True, exist_ok=True)
            tmp = final.parent / f"{final.name}.{uuid.uuid4().hex}{DOWNLOAD_SUFFIX}"
            # tiles are shared: 0o666 minus umask, not mkstemp's 0o600
            fd = os.open(tmp, _TEMP_FLAGS, 0o666)
        except OSError as e:
            raise LocalStorageError(ErrorMessages.WRITE_FAILED.format(final, e)) from e

        try:
            with os.fdopen(fd, "wb") as fh:
                write(fh)
        except DEMReaderError:
            self._discard(tmp)
            raise
        except OSError as e:
            self._discard(tmp)
            raise LocalStorageError(ErrorMessages.WRITE_FAILED.format(tmp, e)) from e
        except BaseException:
            self._discard(tmp)
            raise

        if final.exists():
            logger.debug(f"{final} was published concurrently, discarding {tmp.name}")
            self._discard(tmp)
            return final

        try:
            os.replace(tmp, final)
        except OSError as e:
            self._discard(tmp)
            raise LocalStorageError(ErrorMessages.RENAME_FAILED.format(tmp, final, e)) from e

        return final

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {path}: {e}")
