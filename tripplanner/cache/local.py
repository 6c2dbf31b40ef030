"""
Local duration cache persisted as a single JSON file
"""

import asyncio
import json
from pathlib import Path
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from tripplanner.core.models import Coordinate, TransportMode

from .base import CacheEntry, DurationCache, DurationCacheError, build_key

DEFAULT_CACHE_FILE = Path.home() / ".tripplanner" / "duration_cache.json"


class DurationCacheLocal(DurationCache):
    """
    Duration cache kept in memory and written through to a JSON file

    The file is read at most once, on first access. Changes made to the file
    by someone else afterwards are not seen by this instance. Every mutation
    rewrites the whole file while holding the lock, so writes never interleave.
    """

    def __init__(
        self,
        cache_file: Optional[Path] = None,
        capacity: int = 50000,
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__(capacity, clock)
        self.cache_file = Path(cache_file) if cache_file else DEFAULT_CACHE_FILE
        self._lock = asyncio.Lock()
        self._entries: Optional[Dict[str, CacheEntry]] = None

    async def _load_if_needed(self) -> Dict[str, CacheEntry]:
        """Populate the in-memory map from disk the first time it is needed. Caller holds the lock."""
        if self._entries is not None:
            return self._entries

        entries: Dict[str, CacheEntry] = {}
        if self.cache_file.exists():
            try:
                text = await asyncio.get_event_loop().run_in_executor(
                    None, lambda: self.cache_file.read_text(encoding="utf-8")
                )
                if text.strip():
                    raw = json.loads(text)
                    entries = {key: CacheEntry(**value) for key, value in raw.items()}
            except (OSError, ValueError, ValidationError) as e:
                raise DurationCacheError(f"Failed to load cache file {self.cache_file}: {e}")

        self._entries = entries
        self.logger.debug(f"Loaded {len(entries)} cached durations from {self.cache_file}")
        return entries

    async def _persist(self) -> None:
        """Write the in-memory map to disk. Caller holds the lock."""
        payload = {key: entry.model_dump(mode="json") for key, entry in self._entries.items()}
        text = json.dumps(payload, indent=2)

        def write():
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            self.cache_file.write_text(text, encoding="utf-8")

        try:
            await asyncio.get_event_loop().run_in_executor(None, write)
        except OSError as e:
            raise DurationCacheError(f"Failed to save cache file {self.cache_file}: {e}")

    def _evict_unlocked(self) -> bool:
        excess = len(self._entries) - self.capacity
        if excess <= 0:
            return False
        for key in self._eviction_order(self._entries)[:excess]:
            del self._entries[key]
        self.logger.info(f"Evicted {excess} cached durations (LRU)")
        return True

    async def get_duration(
        self, start: Coordinate, end: Coordinate, mode: TransportMode
    ) -> Optional[CacheEntry]:
        key = build_key(start, end, mode)
        async with self._lock:
            entries = await self._load_if_needed()
            entry = entries.get(key)
            if entry is None:
                self.logger.debug(f"Cache miss: {key}")
                return None

            updated = entry.model_copy(update={"last_update_timestamp": self._now()})
            entries[key] = updated
            await self._persist()
            return updated

    async def save_duration(
        self, start: Coordinate, end: Coordinate, duration: float, mode: TransportMode
    ) -> None:
        key = build_key(start, end, mode)
        entry = self._make_entry(start, end, duration, mode)
        async with self._lock:
            entries = await self._load_if_needed()
            previous = dict(entries)
            entries[key] = entry
            self._evict_unlocked()
            try:
                await self._persist()
            except DurationCacheError:
                # Memory must match the file
                self._entries = previous
                raise
        self.logger.debug(f"Saved: {key}")

    async def enforce_lru(self) -> bool:
        async with self._lock:
            await self._load_if_needed()
            evicted = self._evict_unlocked()
            if evicted:
                await self._persist()
            return evicted

    async def size(self) -> int:
        async with self._lock:
            return len(await self._load_if_needed())
