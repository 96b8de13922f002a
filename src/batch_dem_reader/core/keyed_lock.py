"""
Striped locking over an unbounded string key space.

A fixed table of locks is addressed by a CRC32 of the key, so memory stays
bounded no matter how many tiles are visited. Two keys that land on the same
stripe serialize against each other (false contention); two operations on the
same key never run concurrently.

With N stripes and k distinct keys in flight, the chance that a given key
shares its stripe with at least one other key is ``1 - (1 - 1/N) ** (k - 1)``:
about 1% for N=1000 and k=11, about 9.5% for k=101.
"""

import threading
import zlib
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from ..constants import DEFAULT_LOCK_STRIPES

T = TypeVar("T")


class KeyedLock:
    """Fixed-size table of blocking, non-reentrant locks selected by key hash."""

    def __init__(self, stripes: int = DEFAULT_LOCK_STRIPES) -> None:
        if stripes < 1:
            raise ValueError(f"stripes must be >= 1, got {stripes}")
        self._locks = [threading.Lock() for _ in range(stripes)]

    @property
    def stripes(self) -> int:
        return len(self._locks)

    def stripe_of(self, key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) % len(self._locks)

    def lock_for(self, key: str) -> threading.Lock:
        return self._locks[self.stripe_of(key)]

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Hold the stripe for ``key``. Blocks without timeout."""
        with self.lock_for(key):
            yield

    def with_lock(self, key: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` while holding the stripe for ``key`` and return its result."""
        with self.lock_for(key):
            return fn()

    def collision_probability(self, distinct_keys: int) -> float:
        """Probability that a key shares its stripe with another of ``distinct_keys``."""
        if distinct_keys <= 1:
            return 0.0
        return 1.0 - (1.0 - 1.0 / len(self._locks)) ** (distinct_keys - 1)
