"""
In-memory cache of opened tile handles.

Entries are added at most once per identifier and kept until close_all().
There is no eviction: memory grows with the number of distinct tiles visited.
A bounded LRU could replace the dict behind the same interface.
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

H = TypeVar("H")


class TileHandleCache(Generic[H]):
    """Identifier -> handle mapping populated by get_or_open().

    Concurrent calls for different identifiers are safe. Calls for the same
    identifier must be serialized by the caller (ElevationReader holds the
    identifier's KeyedLock stripe), which is what makes ``opener`` run only
    once per identifier.
    """

    def __init__(self) -> None:
        self._handles: dict[str, H] = {}

    def get(self, identifier: str) -> H | None:
        return self._handles.get(identifier)

    def get_or_open(self, identifier: str, opener: Callable[[], H]) -> H:
        handle = self._handles.get(identifier)
        if handle is None:
            handle = opener()
            self._handles[identifier] = handle
            logger.debug(f"Opened tile {identifier} ({len(self._handles)} open)")
        return handle

    def close_all(self) -> None:
        """Close and forget every handle. Safe to call repeatedly."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            close = getattr(handle, "close", None)
            if close is not None:
                close()

    def identifiers(self) -> list[str]:
        return list(self._handles)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._handles

    def __len__(self) -> int:
        return len(self._handles)
