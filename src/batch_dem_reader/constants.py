"""
Constants for batch-dem-reader.

All magic strings, file layout conventions, and configuration values live here.
"""


class ServerConfig:
    NAME = "batch-dem-reader"
    VERSION = "0.1.0"
    DESCRIPTION = "Batch elevation lookups over a remote, lazily cached DEM tile set"


class EnvVar:
    BASE_URL = "DEM_BASE_URL"
    CACHE_DIR = "DEM_CACHE_DIR"
    INTERPOLATION = "DEM_INTERPOLATION"
    LOCK_STRIPES = "DEM_LOCK_STRIPES"
    HTTP_TIMEOUT = "DEM_HTTP_TIMEOUT"
    MCP_STDIO = "MCP_STDIO"


# Remote layout
INDEX_FILENAME = "index.list.gz"
COMPRESSED_SUFFIX = ".bz2"

# Local cache layout
DEFAULT_CACHE_SUBDIR = "dem"
DOWNLOAD_SUFFIX = ".download"

# Manifest parsing
MANIFEST_COMMENT_PREFIX = "#"
MANIFEST_SEPARATOR = ","
MANIFEST_MIN_FIELDS = 5
TOLERANCE = 0.000001  # degrees added on every side of an indexed box

# Concurrency
DEFAULT_LOCK_STRIPES = 1000
DEFAULT_MAX_WORKERS = 8

# Network
DEFAULT_HTTP_TIMEOUT = 60.0  # seconds, per socket operation
CHUNK_SIZE = 1024 * 1024

# Interpolation methods
INTERPOLATION_METHODS = ["nearest", "bilinear", "cubic"]
DEFAULT_INTERPOLATION = "bilinear"

# MCP transport defaults
DEFAULT_HTTP_HOST = "localhost"
DEFAULT_HTTP_PORT = 8003


class ErrorMessages:
    EMPTY_MANIFEST = "Manifest contains no usable tile entries"
    CORRUPT_MANIFEST = "Manifest {} could not be decompressed: {}"
    FETCH_FAILED = "Could not fetch {}: {}"
    UNSUPPORTED_SCHEME = "Unsupported URL scheme '{}' in {}"
    TRUNCATED_STREAM = "bzip2 stream ended before the end-of-stream marker"
    CACHE_DIR_FAILED = "Could not create cache directory {}: {}"
    WRITE_FAILED = "Could not write {}: {}"
    RENAME_FAILED = "Unable to rename {} to {}: {}"
    UNSAFE_IDENTIFIER = "Tile identifier '{}' escapes the cache directory"
    BAND_COUNT = "{} has {} bands but elevation data should have exactly one"
    UNREADABLE_TILE = "Could not open tile {}: {}"
    POINT_OUTSIDE_DATA = "Point ({}, {}) lies outside the data bounds {} of {}"
    EVALUATION_MISMATCH = "Tile {} matched ({}, {}) in the index but not in its data: {}"
    READER_CLOSED = "Reader is closed"
    INVALID_INTERPOLATION = "Invalid interpolation '{}'. Available: {}"
    INVALID_POINT = "Each point must be an [x, y] pair, got {}"
    EMPTY_POINTS = "At least one point is required"
    NO_BASE_URL = (
        "No tile set configured. Set the DEM_BASE_URL environment variable "
        "to the base URL of the tile set."
    )


class SuccessMessages:
    POINT_ELEVATION = "Elevation at point: {:.1f}"
    POINT_NO_DATA = "No elevation data at point"
    POINTS_ELEVATION = "Retrieved elevation for {} points ({} without data)"
    TILE_FOUND = "Point is covered by tile {}"
    TILE_NOT_FOUND = "No tile covers the point"
