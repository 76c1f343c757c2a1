"""
Cache management for issue-pulse.

Keeps classification results in memory, keyed by issue fingerprint
(issue id + updated timestamp), so unchanged issues are not rescored.
"""

import threading
import time
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, NamedTuple

from issue_pulse.scorer import ClassificationResult

DEFAULT_MAX_SIZE = 1000


class CacheEntry(NamedTuple):
    """A cached classification and the fingerprint it was computed for."""

    updated_at: datetime
    result: ClassificationResult
    stored_at: float


class ClassificationCache:
    """
    Bounded LRU cache of classification results.

    One entry is kept per issue id. A lookup only hits when the stored
    ``updated_at`` equals the one asked for, so any edit to an issue turns
    its old entry into a miss. All operations are serialized with a lock.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: int | None = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of entries. 0 disables caching.
            ttl_seconds: Optional entry lifetime. None keeps entries until
                their fingerprint changes or they are evicted.
            timer: Monotonic clock used for TTL checks.
        """
        if max_size < 0:
            raise ValueError("max_size must be greater than or equal to 0.")
        if ttl_seconds is not None and ttl_seconds < 0:
            raise ValueError("ttl_seconds must be greater than or equal to 0.")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._timer = timer
        self._entries: OrderedDict[int, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_valid(self, entry: CacheEntry, updated_at: datetime) -> bool:
        if entry.updated_at != updated_at:
            return False
        if self.ttl_seconds is None:
            return True
        return self._timer() - entry.stored_at < self.ttl_seconds

    def get(self, issue_id: int, updated_at: datetime) -> ClassificationResult | None:
        """
        Look up the cached result for a fingerprint.

        Returns:
            The cached result, or None on a miss. Stale or expired entries
            are dropped.
        """
        with self._lock:
            entry = self._entries.get(issue_id)
            if entry is None:
                self._misses += 1
                return None

            if not self._is_valid(entry, updated_at):
                del self._entries[issue_id]
                self._misses += 1
                return None

            self._entries.move_to_end(issue_id)
            self._hits += 1
            return entry.result

    def put(
        self, issue_id: int, updated_at: datetime, result: ClassificationResult
    ) -> None:
        """Store a result, replacing any earlier entry for the same issue."""
        if self.max_size == 0:
            return

        with self._lock:
            self._entries[issue_id] = CacheEntry(updated_at, result, self._timer())
            self._entries.move_to_end(issue_id)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
                self._evictions += 1

    def clear(self) -> int:
        """
        Remove all entries and reset counters.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            cleared = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            return cleared

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self._hits / lookups if lookups else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, issue_id: object) -> bool:
        with self._lock:
            return issue_id in self._entries
