"""
Canonical Dataset - SQLAlchemy Store.

Reads municipality_master_data. Postal codes and Ortsteile are JSON lists,
so membership checks happen in Python after a narrowing query.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gemeinde_info.core.exceptions import DatasetError
from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.db.models import MunicipalityModel
from gemeinde_info.services.dataset.base import AuthorityDataset
from gemeinde_info.services.dataset.matching import SimilarityFn, name_similarity

logger = structlog.get_logger()

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlAuthorityDataset(AuthorityDataset):

    def __init__(self, session_factory: SessionFactory, similarity: SimilarityFn = name_similarity):
        super().__init__(similarity)
        self.session_factory = session_factory
        self.log = logger.bind(component="SqlAuthorityDataset")

    async def _query(self, statement) -> list[CanonicalAuthority]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            self.log.warning("Dataset query failed", error=str(e))
            raise DatasetError(f"Municipality dataset query failed: {e}") from e
        return [CanonicalAuthority.model_validate(row) for row in rows]

    async def find_by_postal_code(self, plz: str) -> list[CanonicalAuthority]:
        plz = plz.strip()
        return [a for a in await self.list_authorities() if plz in a.plz]

    async def find_by_name(self, name: str) -> list[CanonicalAuthority]:
        statement = select(MunicipalityModel).where(
            func.lower(MunicipalityModel.gemeinde_name) == name.strip().lower()
        )
        return await self._query(statement)

    async def get_by_bfs_nummer(self, bfs_nummer: int) -> CanonicalAuthority | None:
        matches = await self._query(
            select(MunicipalityModel).where(MunicipalityModel.bfs_nummer == bfs_nummer)
        )
        return matches[0] if matches else None

    async def list_authorities(self) -> list[CanonicalAuthority]:
        return await self._query(select(MunicipalityModel).order_by(MunicipalityModel.bfs_nummer))
