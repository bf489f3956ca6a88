"""
Canonical Dataset - Store Interface.

Abstract contract for the municipality dataset consumed by the resolver.
"""

from abc import ABC, abstractmethod

from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.services.dataset.matching import SimilarityFn, name_similarity, normalize_name


class AuthorityDataset(ABC):
    """Read-only lookups over the canonical municipality dataset."""

    def __init__(self, similarity: SimilarityFn = name_similarity):
        self.similarity = similarity

    @abstractmethod
    async def find_by_postal_code(self, plz: str) -> list[CanonicalAuthority]:
        """All authorities whose postal-code set contains plz."""

    @abstractmethod
    async def find_by_name(self, name: str) -> list[CanonicalAuthority]:
        """Case-insensitive exact match on canonical name."""

    @abstractmethod
    async def list_authorities(self) -> list[CanonicalAuthority]:
        """Every authority in the dataset."""

    async def get_by_bfs_nummer(self, bfs_nummer: int) -> CanonicalAuthority | None:
        """Authority with the given BFS number, None when not in the dataset."""
        for authority in await self.list_authorities():
            if authority.bfs_nummer == bfs_nummer:
                return authority
        return None

    async def find_by_sub_locality(self, name: str) -> list[CanonicalAuthority]:
        """Authorities listing name among their Ortsteile (case-insensitive)."""
        needle = name.strip().lower()
        return [
            authority
            for authority in await self.list_authorities()
            if any(o.lower() == needle for o in authority.ortsteile)
        ]

    async def fuzzy_search(
        self,
        query: str,
        threshold: float,
        limit: int = 5,
    ) -> list[tuple[CanonicalAuthority, float]]:
        """
        Rank authorities by similarity of canonical name or Ortsteil.

        Returns:
            (authority, score) pairs with score >= threshold, best first
        """
        if not normalize_name(query):
            return []

        ranked = []
        for authority in await self.list_authorities():
            names = [authority.gemeinde_name, *authority.ortsteile]
            score = max(self.similarity(query, n) for n in names)
            if score >= threshold:
                ranked.append((authority, score))

        ranked.sort(key=lambda pair: pair[1], reverse=True)
        return ranked[:limit]
