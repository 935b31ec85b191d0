"""
Cache context: one TTL store per resource class plus request coalescing.
"""
import threading
import logging
from typing import Dict, Callable, Any, Hashable

from .core import CacheStore, Clock, utc_now
from .coalescer import FillSource, RequestCoalescer
from .ttl_policies import ResourceClass, get_ttl_for_resource

logger = logging.getLogger("cache.manager")

# Key used for resources that have a single global entry
GLOBAL_KEY = "*"


class CacheManager:
    """
    Cache orchestration for one feed client:
    - Independent TTL store per resource class
    - Lazily created slots per entity id
    - Request coalescing for concurrent misses on the same slot
    - Hit/miss statistics
    """

    def __init__(self, clock: Clock = utc_now):
        """
        Initialize the cache manager.

        Args:
            clock: Returns the current time; injectable for tests
        """
        self._clock = clock
        self._stores: Dict[ResourceClass, CacheStore] = {
            resource: CacheStore(get_ttl_for_resource(resource), clock=clock)
            for resource in ResourceClass
        }
        self._coalescer = RequestCoalescer()
        self._stats_lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
        }

    def store(self, resource: ResourceClass) -> CacheStore:
        return self._stores[resource]

    def fetch(
        self,
        resource: ResourceClass,
        key: Hashable,
        fetch_fn: Callable[[], Any],
    ) -> Any:
        """
        Get data from cache or fetch from upstream.

        On a miss the slot is filled through the coalescer, so concurrent misses
        share one upstream call. Only a fill that reaches upstream counts as a
        miss; joined fills show up in the coalescer stats. A failed fetch leaves
        the slot untouched.

        Args:
            resource: Resource class selecting the store and TTL
            key: Entity id, or GLOBAL_KEY for single-entry resources
            fetch_fn: Function that loads fresh data from upstream

        Returns:
            Cached or freshly fetched data
        """
        store = self._stores[resource]
        cache_key = f"{resource.value}:{key}"

        data = store.get(key)
        if data is not None:
            logger.debug(f"CACHE HIT: {cache_key}")
            self._count("hits")
            return data

        data, source = self._coalescer.fill(resource, key, store, fetch_fn)
        if source is FillSource.UPSTREAM:
            logger.info(f"CACHE MISS: {cache_key}")
            self._count("misses")
        elif source is FillSource.CACHED:
            logger.debug(f"CACHE HIT (refilled): {cache_key}")
            self._count("hits")
        return data

    def _count(self, stat: str) -> None:
        with self._stats_lock:
            self._stats[stat] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._stats_lock:
            hits = self._stats["hits"]
            misses = self._stats["misses"]
        total_requests = hits + misses
        hit_rate = (hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "entries": {
                resource.value: len(store)
                for resource, store in self._stores.items()
            },
            "hits": hits,
            "misses": misses,
            "hit_rate_percent": round(hit_rate, 1),
            "coalescer": self._coalescer.get_stats(),
        }
