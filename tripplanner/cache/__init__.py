"""
Travel duration cache with LRU eviction
"""

from .base import CacheEntry, DurationCache, DurationCacheError, build_key
from .factory import create_duration_cache
from .local import DurationCacheLocal
from .remote import DocumentCollection, DurationCacheRemote

__all__ = [
    "CacheEntry",
    "DurationCache",
    "DurationCacheError",
    "DurationCacheLocal",
    "DurationCacheRemote",
    "DocumentCollection",
    "build_key",
    "create_duration_cache",
]
