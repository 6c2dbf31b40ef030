"""
Build the configured duration cache backend
"""

from tripplanner.config.models import CacheBackend, CacheConfig
from tripplanner.core.db import Database, SqlDocumentCollection

from .base import DurationCache
from .local import DurationCacheLocal
from .remote import DurationCacheRemote


def create_duration_cache(config: CacheConfig) -> DurationCache:
    """
    Create a duration cache from configuration

    Args:
        config: Cache section of the planner configuration

    Returns:
        Local JSON-file cache or remote document cache
    """
    if config.backend == CacheBackend.REMOTE:
        collection = SqlDocumentCollection(Database(config.database_url))
        return DurationCacheRemote(collection, capacity=config.effective_capacity())

    return DurationCacheLocal(config.path, capacity=config.effective_capacity())
