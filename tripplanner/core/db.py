"""
Database models and connection management for the remote duration cache
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import BigInteger, Column, delete
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import Field, SQLModel, func, select

from .models import TransportMode

DEFAULT_COLLECTION = "duration_cache"


class DocumentStoreError(Exception):
    """Document store operation error"""
    pass


class DurationDocument(SQLModel, table=True):
    """
    One cached travel duration, keyed by the cache key of its
    (start, end, transport mode) triple
    """

    __tablename__ = DEFAULT_COLLECTION

    key: str = Field(primary_key=True, description="Cache key")
    start_lat: float = Field(description="Start latitude")
    start_lng: float = Field(description="Start longitude")
    end_lat: float = Field(description="End latitude")
    end_lng: float = Field(description="End longitude")
    duration: float = Field(description="Travel duration in seconds")
    transport_mode: TransportMode = Field(description="Transport mode")
    last_update_timestamp: int = Field(
        sa_column=Column(BigInteger, index=True, nullable=False),
        description="Last use in epoch milliseconds",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"key"})


class Database:
    """
    Database connection manager

    Any SQLAlchemy URL works; plain sqlite URLs are switched to the aiosqlite
    driver. Remote databases need an async driver in the URL
    (e.g. postgresql+asyncpg://).
    """

    def __init__(self, database_url: str = "sqlite:///tripplanner.db"):
        self.database_url = database_url
        url = make_url(database_url)
        if url.drivername == "sqlite":
            url = url.set(drivername="sqlite+aiosqlite")
        self.async_engine = create_async_engine(url, echo=False)
        self.async_session = sessionmaker(
            self.async_engine, class_=AsyncSession, expire_on_commit=False
        )
        self.logger = logging.getLogger(__name__)

    async def create_tables_async(self):
        """Create all database tables asynchronously"""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self.logger.info("Database tables created")

    async def close(self):
        """Close database connections"""
        await self.async_engine.dispose()


class SqlDocumentCollection:
    """
    Document collection stored in the duration_cache table

    Documents are plain dicts holding the DurationDocument columns other than
    the key.
    """

    def __init__(self, db: Database):
        self.db = db
        self.logger = logging.getLogger(__name__)
        self._tables_ready = False

    async def _ensure_tables(self):
        if not self._tables_ready:
            await self.db.create_tables_async()
            self._tables_ready = True

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            await self._ensure_tables()
            async with self.db.async_session() as session:
                document = await session.get(DurationDocument, key)
                return document.to_document() if document else None
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Error reading document {key}: {e}")

    async def set(self, key: str, document: Dict[str, Any]) -> None:
        try:
            await self._ensure_tables()
            async with self.db.async_session() as session:
                existing = await session.get(DurationDocument, key)
                if existing:
                    for field, value in document.items():
                        setattr(existing, field, value)
                else:
                    session.add(DurationDocument(key=key, **document))
                await session.commit()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Error writing document {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self._ensure_tables()
            async with self.db.async_session() as session:
                await session.execute(
                    delete(DurationDocument).where(DurationDocument.key == key)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Error deleting document {key}: {e}")

    async def count(self) -> int:
        try:
            await self._ensure_tables()
            async with self.db.async_session() as session:
                result = await session.execute(
                    select(func.count(DurationDocument.key))
                )
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Error counting documents: {e}")

    async def oldest(self, limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        """Least recently used documents first, ties in key order"""
        try:
            await self._ensure_tables()
            async with self.db.async_session() as session:
                result = await session.execute(
                    select(DurationDocument)
                    .order_by(DurationDocument.last_update_timestamp, DurationDocument.key)
                    .limit(limit)
                )
                return [(doc.key, doc.to_document()) for doc in result.scalars().all()]
        except SQLAlchemyError as e:
            raise DocumentStoreError(f"Error listing oldest documents: {e}")

    async def close(self):
        """Close the underlying database connections"""
        await self.db.close()
