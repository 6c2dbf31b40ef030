"""
Duration cache contract shared by the local and remote backends
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from tripplanner.core.models import Coordinate, TransportMode


class DurationCacheError(Exception):
    """Duration cache storage error"""
    pass


class CacheEntry(BaseModel):
    """Cached travel duration between two coordinates for one transport mode"""

    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    duration: float = Field(-1.0, description="Travel duration in seconds")
    transport_mode: TransportMode = TransportMode.UNKNOWN
    last_update_timestamp: int = Field(0, description="Last use in epoch milliseconds")


def build_key(start: Coordinate, end: Coordinate, mode: TransportMode) -> str:
    """
    Build the storage key for a (start, end, mode) triple

    Floats are written with repr() so that the key round-trips exactly; two
    coordinates share a key only if they are bit-for-bit equal.
    """
    return (
        f"{mode.value}:{start.latitude!r},{start.longitude!r}"
        f"->{end.latitude!r},{end.longitude!r}"
    )


def system_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class DurationCache(ABC):
    """
    Bounded store of travel durations with least-recently-used eviction

    Both reads and writes count as a use. Timestamps handed out by one cache
    instance are strictly increasing, so within an instance the eviction order
    is exactly the order of last use. Entries with equal timestamps (possible
    when several processes share a remote store) are evicted in key order.
    """

    def __init__(self, capacity: int, clock: Optional[Callable[[], int]] = None):
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1")
        self.capacity = capacity
        self.clock = clock or system_clock_ms
        self._last_timestamp = 0
        self.logger = logging.getLogger(__name__)

    def _now(self) -> int:
        now = max(self.clock(), self._last_timestamp + 1)
        self._last_timestamp = now
        return now

    def _make_entry(
        self, start: Coordinate, end: Coordinate, duration: float, mode: TransportMode
    ) -> CacheEntry:
        return CacheEntry(
            start_lat=start.latitude,
            start_lng=start.longitude,
            end_lat=end.latitude,
            end_lng=end.longitude,
            duration=duration,
            transport_mode=mode,
            last_update_timestamp=self._now(),
        )

    @staticmethod
    def _eviction_order(entries: Dict[str, CacheEntry]):
        """Keys sorted from least to most recently used"""
        return sorted(entries, key=lambda k: (entries[k].last_update_timestamp, k))

    @abstractmethod
    async def get_duration(
        self, start: Coordinate, end: Coordinate, mode: TransportMode
    ) -> Optional[CacheEntry]:
        """
        Look up a cached duration

        A hit refreshes the entry's timestamp and persists it.

        Returns:
            The refreshed CacheEntry, or None on a miss
        """

    @abstractmethod
    async def save_duration(
        self, start: Coordinate, end: Coordinate, duration: float, mode: TransportMode
    ) -> None:
        """Insert or replace an entry, then evict down to capacity"""

    @abstractmethod
    async def enforce_lru(self) -> bool:
        """Evict the oldest entries above capacity. True if anything was removed."""

    @abstractmethod
    async def size(self) -> int:
        """Number of stored entries"""

    async def close(self) -> None:
        """Release backend resources. Nothing to do by default."""
