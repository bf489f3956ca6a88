"""
Canonical Dataset - In-Memory Store.

Indexes a list of authorities by postal code and name. Used for
single-instance deployments and tests.
"""

from collections import defaultdict
from pathlib import Path

from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.db.seeder import SEED_DATA_PATH, load_seed_data
from gemeinde_info.services.dataset.base import AuthorityDataset
from gemeinde_info.services.dataset.matching import SimilarityFn, name_similarity


class InMemoryAuthorityDataset(AuthorityDataset):

    def __init__(
        self,
        authorities: list[CanonicalAuthority],
        similarity: SimilarityFn = name_similarity,
    ):
        super().__init__(similarity)
        self._authorities = list(authorities)
        self._by_plz: dict[str, list[CanonicalAuthority]] = defaultdict(list)
        self._by_name: dict[str, list[CanonicalAuthority]] = defaultdict(list)
        self._by_bfs = {authority.bfs_nummer: authority for authority in self._authorities}

        for authority in self._authorities:
            for plz in authority.plz:
                self._by_plz[plz].append(authority)
            self._by_name[authority.gemeinde_name.lower()].append(authority)

    @classmethod
    def from_json(cls, path: Path = SEED_DATA_PATH) -> "InMemoryAuthorityDataset":
        return cls(load_seed_data(path))

    async def find_by_postal_code(self, plz: str) -> list[CanonicalAuthority]:
        return list(self._by_plz.get(plz.strip(), []))

    async def find_by_name(self, name: str) -> list[CanonicalAuthority]:
        return list(self._by_name.get(name.strip().lower(), []))

    async def get_by_bfs_nummer(self, bfs_nummer: int) -> CanonicalAuthority | None:
        return self._by_bfs.get(bfs_nummer)

    async def list_authorities(self) -> list[CanonicalAuthority]:
        return list(self._authorities)
