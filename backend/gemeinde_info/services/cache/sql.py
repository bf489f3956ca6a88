"""
Info Cache - SQLAlchemy Store.

Persists entries in authority_info_cache with a unique
(bfs_nummer, category, scope) constraint. On PostgreSQL and SQLite a write
is a single INSERT .. ON CONFLICT DO UPDATE, so concurrent writers on a new
key both land and the last one wins. Other dialects insert, and retry as an
update when a concurrent insert won the constraint.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import UTC

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gemeinde_info.core.exceptions import CacheWriteError, DatasetError
from gemeinde_info.core.models import (
    CacheEntry,
    CacheKey,
    CachePayload,
    ExtractedInfo,
    InfoCategory,
    SchoolRegistrationInfo,
)
from gemeinde_info.db.models import AuthorityInfoCacheModel
from gemeinde_info.services.cache.base import InfoCache

logger = structlog.get_logger()

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

KEY_COLUMNS = ["bfs_nummer", "category", "scope"]


def payload_model(category: InfoCategory) -> type[ExtractedInfo] | type[SchoolRegistrationInfo]:
    """Pydantic model stored under a category."""
    if category == InfoCategory.SCHOOL_REGISTRATION:
        return SchoolRegistrationInfo
    return ExtractedInfo


class SqlInfoCache(InfoCache):

    def __init__(self, session_factory: SessionFactory, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session_factory = session_factory
        self.log = logger.bind(component="SqlInfoCache")

    @staticmethod
    def _select(key: CacheKey):
        return select(AuthorityInfoCacheModel).where(
            AuthorityInfoCacheModel.bfs_nummer == key.bfs_nummer,
            AuthorityInfoCacheModel.category == key.category.value,
            AuthorityInfoCacheModel.scope == key.scope,
        )

    async def get(self, key: CacheKey) -> CacheEntry | None:
        """
        Raises:
            DatasetError: the cache table could not be read
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(self._select(key))
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatasetError(f"Cache read failed: {e}") from e

        if row is None:
            return None

        try:
            payload = payload_model(key.category).model_validate(row.data)
        except ValidationError as e:
            # Rows written by an older schema count as a miss
            self.log.warning("Discarding unreadable cache row", bfs_nummer=key.bfs_nummer, error=str(e))
            return None

        cached_at = row.cached_at
        if cached_at.tzinfo is None:
            # SQLite drops the offset, values are written in UTC
            cached_at = cached_at.replace(tzinfo=UTC)

        return CacheEntry(
            key=key,
            payload=payload,
            cached_at=cached_at,
            ttl_seconds=row.ttl_seconds,
        )

    async def put(self, key: CacheKey, payload: CachePayload) -> CacheEntry:
        entry = self.new_entry(key, payload)
        values = {
            "bfs_nummer": key.bfs_nummer,
            "category": key.category.value,
            "scope": key.scope,
            "data": payload.model_dump(mode="json"),
            "cached_at": entry.cached_at,
            "ttl_seconds": entry.ttl_seconds,
        }

        try:
            async with self.session_factory() as session:
                insert = UPSERT_INSERTS.get(session.get_bind().dialect.name)
                if insert is not None:
                    await self._upsert(session, insert, values)
                else:
                    await self._insert_or_update(session, key, values)
        except (SQLAlchemyError, DatasetError) as e:
            raise CacheWriteError(
                f"Cache write failed for {key.bfs_nummer}/{key.category.value}: {e}"
            ) from e

        return entry

    @staticmethod
    async def _upsert(session: AsyncSession, insert, values: dict) -> None:
        statement = insert(AuthorityInfoCacheModel).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=KEY_COLUMNS,
            set_={
                "data": statement.excluded.data,
                "cached_at": statement.excluded.cached_at,
                "ttl_seconds": statement.excluded.ttl_seconds,
            },
        )
        await session.execute(statement)
        await session.commit()

    async def _insert_or_update(self, session: AsyncSession, key: CacheKey, values: dict) -> None:
        row = (await session.execute(self._select(key))).scalar_one_or_none()
        if row is None:
            try:
                session.add(AuthorityInfoCacheModel(**values))
                await session.commit()
                return
            except IntegrityError as e:
                # Another writer created the row first
                await session.rollback()
                self.log.debug("Concurrent cache insert, updating instead", error=str(e))
                row = (await session.execute(self._select(key))).scalar_one()

        row.data = values["data"]
        row.cached_at = values["cached_at"]
        row.ttl_seconds = values["ttl_seconds"]
        await session.commit()
