"""
Tile registry: maps a coordinate to the identifier of the tile covering it.

The registry is built once from a manifest and never mutated afterwards, so
lookups need no locking. Boxes are bulk-loaded into a shapely STRtree.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from shapely import Point, box
from shapely.strtree import STRtree

from ..constants import (
    MANIFEST_COMMENT_PREFIX,
    MANIFEST_MIN_FIELDS,
    MANIFEST_SEPARATOR,
    TOLERANCE,
    ErrorMessages,
)
from ..exceptions import ManifestFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in the query coordinate space."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def contains(self, x: float, y: float) -> bool:
        """Inclusive containment test on all four edges."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def expanded(self, tolerance: float) -> "BoundingBox":
        return BoundingBox(
            self.min_x - tolerance,
            self.min_y - tolerance,
            self.max_x + tolerance,
            self.max_y + tolerance,
        )

    def as_list(self) -> list[float]:
        return [self.min_x, self.min_y, self.max_x, self.max_y]


@dataclass(frozen=True)
class TileEntry:
    """A manifest entry: tile identifier and its (tolerance-expanded) envelope."""

    envelope: BoundingBox
    identifier: str


def parse_manifest_line(line: str, tolerance: float = TOLERANCE) -> TileEntry | None:
    """
    Parse one manifest line into a TileEntry.

    Format: ``identifier,min_x,min_y,max_x,max_y[,ignored...]``. Comment lines
    and lines with fewer than five fields yield None. Lines that cannot be
    turned into a valid box are logged and also yield None.
    """
    if line.startswith(MANIFEST_COMMENT_PREFIX):
        return None

    parts = [p.strip() for p in line.rstrip("\r\n").split(MANIFEST_SEPARATOR)]
    if len(parts) < MANIFEST_MIN_FIELDS:
        if line.strip():
            logger.debug(f"Skipping short manifest line: {line!r}")
        return None

    identifier = parts[0]
    if not identifier:
        logger.warning(f"Skipping manifest line without identifier: {line!r}")
        return None

    try:
        min_x, min_y, max_x, max_y = (float(v) for v in parts[1:MANIFEST_MIN_FIELDS])
    except ValueError:
        logger.warning(f"Skipping manifest line with non-numeric bounds: {line!r}")
        return None

    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        logger.warning(f"Skipping manifest line with non-finite bounds: {line!r}")
        return None
    if min_x > max_x or min_y > max_y:
        logger.warning(f"Skipping manifest line with inverted bounds: {line!r}")
        return None

    envelope = BoundingBox(min_x, min_y, max_x, max_y).expanded(tolerance)
    return TileEntry(envelope=envelope, identifier=identifier)


class TileRegistry:
    """Immutable spatial index from bounding boxes to tile identifiers.

    When several boxes contain a point, lookup returns the first one met in
    the STRtree traversal order. That order is an implementation detail of the
    tree, not the manifest order: callers must not rely on a particular winner
    among overlapping tiles.
    """

    def __init__(self, entries: list[TileEntry]) -> None:
        if not entries:
            raise ManifestFormatError(ErrorMessages.EMPTY_MANIFEST)
        self._entries = tuple(entries)
        self._tree = STRtree([box(*e.envelope.as_list()) for e in self._entries])
        self._by_identifier = {e.identifier: e for e in self._entries}

    @classmethod
    def build(cls, lines: Iterable[str], tolerance: float = TOLERANCE) -> "TileRegistry":
        """Build a registry from manifest lines.

        Raises:
            ManifestFormatError: if no line produced a usable entry
        """
        entries = []
        for line in lines:
            entry = parse_manifest_line(line, tolerance)
            if entry is not None:
                entries.append(entry)

        logger.info(f"Indexed {len(entries)} tiles")
        return cls(entries)

    def lookup(self, x: float, y: float) -> str | None:
        """Return the identifier of the first tile containing (x, y), or None."""
        if math.isnan(x) or math.isnan(y):
            return None

        for i in self._tree.query(Point(x, y)):
            entry = self._entries[int(i)]
            if entry.envelope.contains(x, y):
                return entry.identifier
        return None

    def envelope_of(self, identifier: str) -> BoundingBox | None:
        entry = self._by_identifier.get(identifier)
        return entry.envelope if entry is not None else None

    @property
    def entries(self) -> tuple[TileEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)
