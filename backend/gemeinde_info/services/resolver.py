"""
Municipality Resolver.

Maps a user-supplied Swiss location (postal code, municipality name or
informal sub-locality) to its canonical authority.

Resolution is an ordered chain of tiers, first hit wins:
1. Postal code (4 digits)
2. Exact name, case-insensitive
3. Diacritic-normalized name (exact, then whole-word substring)
4. Sub-locality (Ortsteil) -> parent municipality
5. Fuzzy name similarity above a threshold
6. Open civic dataset (BFS directory)
"""

import re
from collections.abc import Awaitable, Callable

import httpx
import structlog

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import DatasetError, NotFoundError
from gemeinde_info.core.logging import record_resolution
from gemeinde_info.core.models import CanonicalAuthority, ResolutionSource, ResolvedAuthority
from gemeinde_info.services.dataset import AuthorityDataset, contains_as_words, normalize_name
from gemeinde_info.services.municipality_urls import website_for
from gemeinde_info.services.opendata import OpendataSwissClient

logger = structlog.get_logger()

PLZ_PATTERN = re.compile(r"^\d{4}$")

Tier = Callable[[str, str | None], Awaitable[ResolvedAuthority | None]]


def prefer_canton(
    candidates: list[CanonicalAuthority],
    canton_hint: str | None,
) -> list[CanonicalAuthority]:
    """Stable reorder putting authorities in the hinted canton first."""
    if not canton_hint:
        return candidates
    hint = canton_hint.strip().upper()
    return sorted(candidates, key=lambda a: a.kanton.upper() != hint)


class MunicipalityResolver:
    """
    Resolves location queries against the canonical dataset.

    Usage:
        resolver = MunicipalityResolver(InMemoryAuthorityDataset.from_json())
        resolved = await resolver.resolve("Kleindöttingen", canton_hint="AG")
    """

    def __init__(
        self,
        dataset: AuthorityDataset,
        opendata: OpendataSwissClient | None = None,
        settings: Settings | None = None,
    ):
        self.dataset = dataset
        self.opendata = opendata
        self.settings = settings or default_settings
        self.log = logger.bind(component="MunicipalityResolver")

        self.tiers: list[tuple[str, Tier]] = [
            ("plz", self._by_postal_code),
            ("name", self._by_name),
            ("normalized", self._by_normalized_name),
            ("ortsteil", self._by_sub_locality),
            ("fuzzy", self._by_fuzzy_name),
        ]
        if opendata is not None:
            self.tiers.append(("opendata", self._by_opendata))

    async def resolve(self, query: str, canton_hint: str | None = None) -> ResolvedAuthority:
        """
        Resolve query to a canonical authority.

        Args:
            query: Postal code, municipality name or sub-locality
            canton_hint: Optional 2-letter canton code used to break ties

        Returns:
            ResolvedAuthority with the tier that matched in `source`

        Raises:
            NotFoundError: when the query is blank or no tier matches
        """
        query = (query or "").strip()
        if not query:
            raise NotFoundError(query)

        for tier_name, tier in self.tiers:
            try:
                resolved = await tier(query, canton_hint)
            except (DatasetError, httpx.HTTPError) as e:
                self.log.warning("Resolution tier failed", tier=tier_name, query=query, error=str(e))
                continue

            if resolved is not None:
                self.log.info(
                    "Municipality resolved",
                    query=query,
                    tier=tier_name,
                    gemeinde=resolved.gemeinde_name,
                    bfs_nummer=resolved.bfs_nummer,
                )
                record_resolution(query, resolved)
                return resolved

        self.log.info("Municipality not found", query=query, canton_hint=canton_hint)
        raise NotFoundError(query)

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    def _resolved(
        self,
        authority: CanonicalAuthority,
        ortsteil: str,
        source: ResolutionSource,
    ) -> ResolvedAuthority:
        resolved = ResolvedAuthority.from_authority(authority, ortsteil, source)
        if not resolved.website_url:
            resolved.website_url = website_for(authority.gemeinde_name)
        return resolved

    async def _by_postal_code(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        if not PLZ_PATTERN.match(query):
            return None
        matches = prefer_canton(await self.dataset.find_by_postal_code(query), canton_hint)
        if not matches:
            return None
        authority = matches[0]
        return self._resolved(authority, authority.gemeinde_name, ResolutionSource.PLZ)

    async def _by_name(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        matches = prefer_canton(await self.dataset.find_by_name(query), canton_hint)
        if not matches:
            return None
        return self._resolved(matches[0], query, ResolutionSource.NAME)

    async def _by_normalized_name(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        needle = normalize_name(query)
        authorities = await self.dataset.list_authorities()

        exact = [a for a in authorities if normalize_name(a.gemeinde_name) == needle]
        if exact:
            return self._resolved(prefer_canton(exact, canton_hint)[0], query, ResolutionSource.NORMALIZED)

        partial = [
            a for a in authorities
            if contains_as_words(normalize_name(a.gemeinde_name), needle)
            or contains_as_words(needle, normalize_name(a.gemeinde_name))
        ]
        if not partial:
            return None

        # Closest in length to the query first
        partial.sort(key=lambda a: abs(len(normalize_name(a.gemeinde_name)) - len(needle)))
        return self._resolved(prefer_canton(partial, canton_hint)[0], query, ResolutionSource.NORMALIZED)

    async def _by_sub_locality(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        matches = prefer_canton(await self.dataset.find_by_sub_locality(query), canton_hint)
        if not matches:
            return None
        parent = matches[0]
        ortsteil = next((o for o in parent.ortsteile if o.lower() == query.lower()), query)
        return self._resolved(parent, ortsteil, ResolutionSource.ORTSTEIL)

    async def _by_fuzzy_name(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        ranked = await self.dataset.fuzzy_search(query, self.settings.fuzzy_threshold)
        if not ranked:
            return None

        authority, score = ranked[0]
        if canton_hint:
            hint = canton_hint.strip().upper()
            in_canton = [(a, s) for a, s in ranked if a.kanton.upper() == hint]
            if in_canton:
                authority, score = in_canton[0]

        # Echo the name that scored best, which may be one of the Ortsteile
        matched = max(
            [authority.gemeinde_name, *authority.ortsteile],
            key=lambda n: self.dataset.similarity(query, n),
        )
        self.log.debug("Fuzzy match", query=query, match=matched, score=round(score, 3))
        return self._resolved(authority, matched, ResolutionSource.FUZZY)

    async def _by_opendata(self, query: str, canton_hint: str | None) -> ResolvedAuthority | None:
        authority = await self.opendata.find_by_name(query, canton=canton_hint)
        if authority is None:
            return None
        return self._resolved(authority, query, ResolutionSource.OPENDATA)
