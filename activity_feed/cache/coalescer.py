"""
Slot filling with request coalescing.

A slot that misses is filled by exactly one upstream call at a time; callers
that miss the same slot while that call is running wait for it and share its
result or its error.
"""
import threading
import logging
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional, Tuple
from dataclasses import dataclass, field

from .core import CacheStore
from .ttl_policies import ResourceClass

logger = logging.getLogger("cache.coalescer")

SlotKey = Tuple[ResourceClass, Hashable]


class FillSource(Enum):
    """How a fill request was answered."""
    UPSTREAM = "upstream"  # this caller ran the fetch
    CACHED = "cached"      # an earlier fill landed after the caller's miss
    JOINED = "joined"      # waited on another caller's fetch


@dataclass
class _PendingFill:
    done: threading.Event = field(default_factory=threading.Event)
    result: Optional[Any] = None
    error: Optional[Exception] = None


class RequestCoalescer:
    """
    Fills cache slots, collapsing concurrent fills of one slot into one fetch.

    Only the caller that runs the fetch writes the slot, and only on success.

    Usage:
        coalescer = RequestCoalescer()
        posts, source = coalescer.fill(
            ResourceClass.USER_POSTS, 3, posts_store, lambda: load_posts(3)
        )
    """

    def __init__(self):
        self._pending: Dict[SlotKey, _PendingFill] = {}
        self._lock = threading.Lock()
        self._coalesced = 0

    def fill(
        self,
        resource: ResourceClass,
        key: Hashable,
        store: CacheStore,
        fetch_fn: Callable[[], Any],
    ) -> Tuple[Any, FillSource]:
        """
        Fill one slot of ``store`` from ``fetch_fn`` unless another caller is.

        Returns:
            (data, source) where source says whether this call fetched,
            found the slot already refilled, or joined a running fetch

        Raises:
            Exception: Any error from fetch_fn, raised in every waiting caller
        """
        slot_key = (resource, key)
        with self._lock:
            pending = self._pending.get(slot_key)
            is_owner = pending is None
            if is_owner:
                pending = _PendingFill()
                self._pending[slot_key] = pending
            else:
                self._coalesced += 1
                logger.debug(f"Joining fill of {resource.value}:{key}")

        if not is_owner:
            pending.done.wait()
            if pending.error is not None:
                raise pending.error
            return pending.result, FillSource.JOINED

        try:
            # A fill that finished between the caller's miss and now counts
            cached = store.get(key)
            if cached is not None:
                pending.result = cached
                return cached, FillSource.CACHED

            pending.result = fetch_fn()
            store.put(key, pending.result)
            return pending.result, FillSource.UPSTREAM
        except Exception as e:
            pending.error = e
            logger.warning(f"Fill failed for {resource.value}:{key}: {e}")
            raise
        finally:
            with self._lock:
                del self._pending[slot_key]
            pending.done.set()

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics."""
        with self._lock:
            return {
                "in_flight": len(self._pending),
                "coalesced": self._coalesced,
            }
