"""In-process cache for appointment listings.

Entries are keyed by organization and the normalized filter key, and carry
their own timestamp so expiry is evaluated per entry. One instance lives on
``app.state`` and is handed to routers by dependency; services that mutate
appointments, clients or agendas invalidate the organization's entries.
Writes sweep expired entries and evict the oldest ones beyond
``max_entries``.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached value with the monotonic time it was stored at."""
    value: Any
    stored_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl_seconds


@dataclass
class ListingCache:
    """TTL cache for listings, partitioned by organization."""

    ttl_seconds: float = 30.0
    max_entries: int = 1000
    clock: Callable[[], float] = time.monotonic
    _entries: dict[tuple[UUID, Hashable], CacheEntry] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, org_id: UUID, key: Hashable) -> Any | None:
        """Return the cached value, or None when missing or stale."""
        with self._lock:
            entry = self._entries.get((org_id, key))
            if entry is None:
                return None
            if not entry.is_fresh(self.clock()):
                del self._entries[(org_id, key)]
                return None
            return entry.value

    def set(self, org_id: UUID, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0 or self.max_entries <= 0:
            return
        with self._lock:
            now = self.clock()
            self._sweep(now)
            # Re-inserting moves the key to the end of the eviction order
            self._entries.pop((org_id, key), None)
            self._entries[(org_id, key)] = CacheEntry(
                value=value,
                stored_at=now,
                ttl_seconds=self.ttl_seconds,
            )
            while len(self._entries) > self.max_entries:
                del self._entries[next(iter(self._entries))]

    def _sweep(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if not entry.is_fresh(now)]
        for k in expired:
            del self._entries[k]

    def get_or_load(self, org_id: UUID, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or compute, store and return it."""
        cached = self.get(org_id, key)
        if cached is not None:
            return cached
        value = loader()
        self.set(org_id, key, value)
        return value

    def invalidate(self, org_id: UUID | None) -> int:
        """Drop every entry of the organization. Returns how many were dropped."""
        if org_id is None:
            return 0
        with self._lock:
            stale = [k for k in self._entries if k[0] == org_id]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug("listing_cache_invalidated", extra={"org_id": str(org_id), "entries": len(stale)})
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
