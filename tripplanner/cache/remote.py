"""
Remote duration cache stored one document per entry
"""

from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from tripplanner.core.db import DocumentStoreError
from tripplanner.core.models import Coordinate, TransportMode

from .base import CacheEntry, DurationCache, DurationCacheError, build_key


class DocumentCollection(Protocol):
    """Minimal document-collection interface used by the remote cache"""

    async def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    async def set(self, key: str, document: Dict[str, Any]) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def count(self) -> int: ...

    async def oldest(self, limit: int) -> List[Tuple[str, Dict[str, Any]]]: ...

    async def close(self) -> None: ...


class DurationCacheRemote(DurationCache):
    """
    Duration cache shared through a document collection

    Nothing is kept in memory: every call goes to the collection. When the
    collection grows past capacity the oldest documents are deleted
    explicitly.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        capacity: int = 10000,
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__(capacity, clock)
        self.collection = collection

    async def get_duration(
        self, start: Coordinate, end: Coordinate, mode: TransportMode
    ) -> Optional[CacheEntry]:
        key = build_key(start, end, mode)
        try:
            document = await self.collection.get(key)
            if document is None:
                self.logger.debug(f"Cache miss: {key}")
                return None

            entry = CacheEntry(**document).model_copy(
                update={"last_update_timestamp": self._now()}
            )
            await self.collection.set(key, entry.model_dump())
            return entry
        except DocumentStoreError as e:
            raise DurationCacheError(f"Failed to read {key}: {e}")
        except ValidationError as e:
            raise DurationCacheError(f"Malformed cache document {key}: {e}")

    async def save_duration(
        self, start: Coordinate, end: Coordinate, duration: float, mode: TransportMode
    ) -> None:
        key = build_key(start, end, mode)
        entry = self._make_entry(start, end, duration, mode)
        try:
            await self.collection.set(key, entry.model_dump())
        except DocumentStoreError as e:
            raise DurationCacheError(f"Failed to save {key}: {e}")
        self.logger.debug(f"Saved: {key}")
        await self.enforce_lru()

    async def enforce_lru(self) -> bool:
        try:
            excess = await self.collection.count() - self.capacity
            if excess <= 0:
                return False

            for key, _ in await self.collection.oldest(excess):
                await self.collection.delete(key)
        except DocumentStoreError as e:
            raise DurationCacheError(f"Failed to enforce LRU: {e}")

        self.logger.info(f"Evicted {excess} old cache documents")
        return True

    async def size(self) -> int:
        try:
            return await self.collection.count()
        except DocumentStoreError as e:
            raise DurationCacheError(f"Failed to count cache documents: {e}")

    async def close(self) -> None:
        await self.collection.close()
