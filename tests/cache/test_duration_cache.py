"""
Backend-agnostic tests for the duration cache contract
"""

import tempfile
from pathlib import Path

import pytest

from tripplanner.cache.base import CacheEntry, DurationCache, build_key
from tripplanner.cache.local import DurationCacheLocal
from tripplanner.cache.remote import DurationCacheRemote
from tripplanner.core.db import Database, SqlDocumentCollection
from tripplanner.core.models import Coordinate, TransportMode

LAUSANNE = Coordinate(latitude=46.5197, longitude=6.6323)
GENEVA = Coordinate(latitude=46.2044, longitude=6.1432)
ZURICH = Coordinate(latitude=47.3769, longitude=8.5417)
BERN = Coordinate(latitude=46.948, longitude=7.4474)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture(params=["local", "memory", "sql"])
async def make_cache(request, clock, temp_dir, memory_collection):
    """Factory building a cache of the requested capacity on each backend"""
    databases = []

    def factory(capacity: int = 10) -> DurationCache:
        if request.param == "local":
            return DurationCacheLocal(temp_dir / "cache.json", capacity=capacity, clock=clock)
        if request.param == "memory":
            return DurationCacheRemote(memory_collection, capacity=capacity, clock=clock)
        db = Database(f"sqlite:///{temp_dir / 'cache.db'}")
        databases.append(db)
        return DurationCacheRemote(SqlDocumentCollection(db), capacity=capacity, clock=clock)

    yield factory

    for db in databases:
        await db.close()


class TestBuildKey:
    """Test cache key construction"""

    def test_key_contains_mode_and_both_coordinates(self):
        """Test key layout"""
        key = build_key(LAUSANNE, GENEVA, TransportMode.CAR)

        assert key == "CAR:46.5197,6.6323->46.2044,6.1432"

    def test_key_is_exact(self):
        """Test that nearby but different coordinates get different keys"""
        nearby = Coordinate(latitude=46.5197000001, longitude=6.6323)

        assert build_key(LAUSANNE, GENEVA, TransportMode.CAR) != build_key(
            nearby, GENEVA, TransportMode.CAR
        )

    def test_key_depends_on_direction_and_mode(self):
        """Test that direction and transport mode are part of the identity"""
        forward = build_key(LAUSANNE, GENEVA, TransportMode.CAR)

        assert forward != build_key(GENEVA, LAUSANNE, TransportMode.CAR)
        assert forward != build_key(LAUSANNE, GENEVA, TransportMode.WALKING)


class TestDurationCacheContract:
    """Behaviour every backend must share"""

    @pytest.mark.asyncio
    async def test_save_then_get_returns_duration(self, make_cache):
        """Test the save/get round trip"""
        cache = make_cache()

        await cache.save_duration(LAUSANNE, GENEVA, 3600.5, TransportMode.CAR)
        entry = await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)

        assert isinstance(entry, CacheEntry)
        assert entry.duration == 3600.5
        assert entry.transport_mode == TransportMode.CAR
        assert (entry.start_lat, entry.start_lng) == (LAUSANNE.latitude, LAUSANNE.longitude)
        assert (entry.end_lat, entry.end_lng) == (GENEVA.latitude, GENEVA.longitude)

    @pytest.mark.asyncio
    async def test_miss_returns_none(self, make_cache):
        """Test that a miss is None rather than an error"""
        cache = make_cache()

        assert await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR) is None

    @pytest.mark.asyncio
    async def test_other_mode_is_a_miss(self, make_cache):
        """Test that the transport mode is part of the key"""
        cache = make_cache()
        await cache.save_duration(LAUSANNE, GENEVA, 3600, TransportMode.CAR)

        assert await cache.get_duration(LAUSANNE, GENEVA, TransportMode.WALKING) is None
        assert await cache.get_duration(GENEVA, LAUSANNE, TransportMode.CAR) is None

    @pytest.mark.asyncio
    async def test_save_overwrites_existing_entry(self, make_cache):
        """Test upsert semantics"""
        cache = make_cache()

        await cache.save_duration(LAUSANNE, GENEVA, 3600, TransportMode.CAR)
        await cache.save_duration(LAUSANNE, GENEVA, 4200, TransportMode.CAR)

        entry = await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)
        assert entry.duration == 4200
        assert await cache.size() == 1

    @pytest.mark.asyncio
    async def test_read_refreshes_timestamp(self, make_cache, clock):
        """Test that a read counts as a use"""
        cache = make_cache()
        await cache.save_duration(LAUSANNE, GENEVA, 3600, TransportMode.CAR)
        first = await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)

        clock.tick(5000)
        second = await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)

        assert second.last_update_timestamp >= first.last_update_timestamp
        assert second.last_update_timestamp == clock.now

    @pytest.mark.asyncio
    async def test_timestamps_never_repeat_with_frozen_clock(self, make_cache):
        """Test that one instance hands out strictly increasing timestamps"""
        cache = make_cache()
        await cache.save_duration(LAUSANNE, GENEVA, 1, TransportMode.CAR)
        await cache.save_duration(GENEVA, LAUSANNE, 2, TransportMode.CAR)

        first = await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)
        second = await cache.get_duration(GENEVA, LAUSANNE, TransportMode.CAR)

        assert second.last_update_timestamp > first.last_update_timestamp

    @pytest.mark.asyncio
    async def test_eviction_removes_oldest_entry(self, make_cache, clock):
        """Test that N + 1 inserts leave N entries without the oldest"""
        cache = make_cache(capacity=3)
        pairs = [(LAUSANNE, GENEVA), (GENEVA, ZURICH), (ZURICH, BERN), (BERN, LAUSANNE)]

        for start, end in pairs:
            await cache.save_duration(start, end, 600, TransportMode.CAR)
            clock.tick()

        assert await cache.size() == 3
        assert await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR) is None
        for start, end in pairs[1:]:
            assert await cache.get_duration(start, end, TransportMode.CAR) is not None

    @pytest.mark.asyncio
    async def test_read_protects_entry_from_eviction(self, make_cache, clock):
        """Test least-recently-used rather than least-recently-inserted eviction"""
        cache = make_cache(capacity=2)
        await cache.save_duration(LAUSANNE, GENEVA, 1, TransportMode.CAR)
        clock.tick()
        await cache.save_duration(GENEVA, ZURICH, 2, TransportMode.CAR)
        clock.tick()

        # Touch the oldest entry so the second one becomes least recently used
        await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR)
        clock.tick()
        await cache.save_duration(ZURICH, BERN, 3, TransportMode.CAR)

        assert await cache.get_duration(GENEVA, ZURICH, TransportMode.CAR) is None
        assert await cache.get_duration(LAUSANNE, GENEVA, TransportMode.CAR) is not None
        assert await cache.get_duration(ZURICH, BERN, TransportMode.CAR) is not None

    @pytest.mark.asyncio
    async def test_eviction_follows_insertion_order_on_frozen_clock(self, make_cache):
        """Test deterministic eviction when the clock does not move"""
        cache = make_cache(capacity=2)

        await cache.save_duration(ZURICH, BERN, 1, TransportMode.CAR)
        await cache.save_duration(LAUSANNE, GENEVA, 2, TransportMode.CAR)
        await cache.save_duration(GENEVA, ZURICH, 3, TransportMode.CAR)

        assert await cache.get_duration(ZURICH, BERN, TransportMode.CAR) is None
        assert await cache.size() == 2

    @pytest.mark.asyncio
    async def test_size_stays_bounded_under_sustained_inserts(self, make_cache, clock):
        """Test that the store never holds more than capacity entries"""
        cache = make_cache(capacity=5)

        for i in range(20):
            start = Coordinate(latitude=46.0 + i / 100, longitude=7.0)
            await cache.save_duration(start, BERN, float(i), TransportMode.CAR)
            clock.tick()
            assert await cache.size() <= 5

        assert await cache.size() == 5

    @pytest.mark.asyncio
    async def test_enforce_lru_without_excess(self, make_cache):
        """Test that an explicit pass under capacity removes nothing"""
        cache = make_cache(capacity=5)
        await cache.save_duration(LAUSANNE, GENEVA, 1, TransportMode.CAR)

        assert await cache.enforce_lru() is False
        assert await cache.size() == 1

    @pytest.mark.asyncio
    async def test_capacity_must_be_positive(self, make_cache):
        """Test capacity validation"""
        with pytest.raises(ValueError, match="at least 1"):
            make_cache(capacity=0)
