"""
Caching module with per-resource TTL windows and request coalescing.
"""
from .core import CacheEntry, CacheStore, utc_now
from .ttl_policies import (
    TTL_CONFIG,
    ResourceClass,
    get_ttl_for_resource,
)
from .coalescer import FillSource, RequestCoalescer
from .manager import GLOBAL_KEY, CacheManager

__all__ = [
    # Core types
    "CacheEntry",
    "CacheStore",
    "utc_now",
    # TTL policies
    "TTL_CONFIG",
    "ResourceClass",
    "get_ttl_for_resource",
    # Coalescing
    "FillSource",
    "RequestCoalescer",
    # Manager
    "GLOBAL_KEY",
    "CacheManager",
]
