"""
Exception hierarchy for batch-dem-reader.

Errors raised while opening a reader (manifest retrieval) and while fetching
tiles subclass OSError so callers can treat them as I/O failures.
"""


class DEMReaderError(Exception):
    """Base class for all batch-dem-reader errors."""


class ManifestFormatError(DEMReaderError, OSError):
    """The tile manifest could not be parsed into any usable entry."""


class NetworkError(DEMReaderError, OSError):
    """A remote resource could not be fetched or decompressed."""


class LocalStorageError(DEMReaderError, OSError):
    """A tile could not be written to or published in the cache directory."""


class RasterFormatError(DEMReaderError, ValueError):
    """A cached tile is unreadable or is not a single-band elevation raster."""


class PointOutsideDataError(DEMReaderError, ValueError):
    """A coordinate lies outside the data envelope of an opened tile."""


class EvaluationError(DEMReaderError, RuntimeError):
    """The tile index and the tile data disagree about a coordinate."""


class ReaderClosedError(DEMReaderError, ValueError):
    """The reader was used after close()."""
