"""
Shared fixtures for duration cache tests
"""

import pytest


class FakeClock:
    """Controllable millisecond clock"""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def tick(self, ms: int = 1000):
        self.now += ms


class InMemoryCollection:
    """Document collection held in a dict"""

    def __init__(self):
        self.documents = {}
        self.deleted = []
        self.closed = False

    async def get(self, key):
        document = self.documents.get(key)
        return dict(document) if document is not None else None

    async def set(self, key, document):
        self.documents[key] = dict(document)

    async def delete(self, key):
        self.deleted.append(key)
        self.documents.pop(key, None)

    async def count(self):
        return len(self.documents)

    async def close(self):
        self.closed = True

    async def oldest(self, limit):
        keys = sorted(
            self.documents,
            key=lambda k: (self.documents[k]["last_update_timestamp"], k),
        )
        return [(k, dict(self.documents[k])) for k in keys[:limit]]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_collection():
    return InMemoryCollection()
