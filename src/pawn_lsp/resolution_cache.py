"""Resolution cache for include lookups.

This module provides the CacheEntry dataclass and the ResolutionCache class
that memoizes include resolution outcomes for a single resolver. The cache is
bounded and evicts strictly in insertion order (FIFO), never by recency.
"""

from __future__ import annotations

import itertools
import logging
import time
from collections import OrderedDict, deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CAPACITY = 256


@dataclass(frozen=True)
class CacheEntry:
    """One memoized resolution outcome.

    Attributes:
        key: The raw include path text, verbatim
        resolved_path: The resolved path, or None when not found
        found: Whether a file was found
        recorded_at: Epoch seconds at which the entry was recorded
    """

    key: str
    resolved_path: str | None
    found: bool
    recorded_at: float


class ResolutionCache:
    """Bounded, append-only cache of include resolution outcomes.

    This class maintains two structures:
    1. By insertion sequence - an ordered map giving O(1) FIFO eviction
    2. By key - the insertion sequences recorded for each key, oldest first

    Recording an existing key appends a duplicate entry rather than replacing
    the old one; lookups answer with the oldest surviving entry for a key.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY, enabled: bool = True) -> None:
        """Initialize an empty cache.

        Args:
            capacity: Maximum number of entries held at once.
            enabled: When False, lookups always miss and records are dropped.
        """
        if capacity < 1:
            raise ValueError(f"cache capacity must be at least 1, got {capacity}")

        self._capacity = capacity
        self._enabled = enabled

        # Insertion sequence -> entry, oldest first
        self._entries: OrderedDict[int, CacheEntry] = OrderedDict()

        # Key -> insertion sequences of its entries, oldest first
        self._sequences_by_key: dict[str, deque[int]] = {}

        self._counter = itertools.count()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def enabled(self) -> bool:
        return self._enabled

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, raw_path: str) -> CacheEntry | None:
        """Look up the recorded outcome for a raw include path.

        Args:
            raw_path: The raw include path text.

        Returns:
            The cached entry, or None if caching is disabled or the key was
            never recorded (or has been evicted).
        """
        if not self._enabled:
            return None

        sequences = self._sequences_by_key.get(raw_path)
        if not sequences:
            return None
        return self._entries[sequences[0]]

    def record(self, raw_path: str, resolved_path: str | None, found: bool) -> None:
        """Record a resolution outcome, evicting the oldest entry when full.

        Args:
            raw_path: The raw include path text used as the key.
            resolved_path: The resolved path, or None when not found.
            found: Whether a file was found.
        """
        if not self._enabled:
            return

        if len(self._entries) >= self._capacity:
            self._evict_oldest()

        sequence = next(self._counter)
        self._entries[sequence] = CacheEntry(
            key=raw_path,
            resolved_path=resolved_path,
            found=found,
            recorded_at=time.time(),
        )
        self._sequences_by_key.setdefault(raw_path, deque()).append(sequence)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._sequences_by_key.clear()

    def _evict_oldest(self) -> None:
        """Remove the single oldest entry from both structures."""
        sequence, entry = self._entries.popitem(last=False)

        # The oldest entry overall is also the oldest for its own key
        sequences = self._sequences_by_key[entry.key]
        sequences.popleft()
        if not sequences:
            del self._sequences_by_key[entry.key]

        logger.debug(f"Evicted include cache entry {entry.key!r} (sequence {sequence})")
