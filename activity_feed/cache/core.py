"""
Core cache data structures.
"""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Hashable, Optional


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock for cache timestamps."""
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """
    A single keyed slot holding the last successfully fetched value.

    An empty slot has neither data nor a timestamp and is never valid.
    """
    ttl: timedelta
    data: Optional[Any] = None
    fetched_at: Optional[datetime] = None

    def age(self, now: datetime) -> Optional[timedelta]:
        """Time since data was fetched, or None for an empty slot."""
        if self.fetched_at is None:
            return None
        return now - self.fetched_at

    def is_valid(self, now: datetime) -> bool:
        """Check if the slot holds data that is still within its TTL."""
        if self.data is None or self.fetched_at is None:
            return False
        return now - self.fetched_at < self.ttl


class CacheStore:
    """
    Per-key expiring value store with one fixed TTL.

    Staleness is checked at read time; entries are never evicted.

    Usage:
        store = CacheStore(ttl=timedelta(seconds=30))
        if not store.is_valid(user_id):
            store.put(user_id, fetch_posts(user_id))
        posts = store.get(user_id)
    """

    def __init__(self, ttl: timedelta, clock: Clock = utc_now):
        self._ttl = ttl
        self._clock = clock
        self._slots: Dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def slot(self, key: Hashable) -> CacheEntry:
        """Get the slot for a key, creating an empty one on first access."""
        with self._lock:
            entry = self._slots.get(key)
            if entry is None:
                entry = CacheEntry(ttl=self._ttl)
                self._slots[key] = entry
            return entry

    def is_valid(self, key: Hashable) -> bool:
        return self.slot(key).is_valid(self._clock())

    def get(self, key: Hashable) -> Optional[Any]:
        """Return cached data for a key, or None if the slot is empty or stale."""
        entry = self.slot(key)
        if entry.is_valid(self._clock()):
            return entry.data
        return None

    def put(self, key: Hashable, value: Any) -> None:
        """Replace the slot's data and stamp it with the current time."""
        entry = self.slot(key)
        with self._lock:
            entry.data = value
            entry.fetched_at = self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
