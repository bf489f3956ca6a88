"""
Authority Info Service.

Public operations of the core:
- resolve_location: query -> ResolvedAuthority (raises NotFoundError)
- get_authority_info: ResolvedAuthority -> info tagged with cache provenance
- get_school_registration_info: ResolvedAuthority + address -> school
  authority, enrolment info and age guidance

Per request:
1. Unless force_refresh, read the cache by (bfs_nummer, category, scope)
2. Fresh hit -> cached=True with the original cached_at
3. Miss / stale / forced -> page fetch + AI extraction (with discovery for
   the residents' office)
4. Write the cache (best-effort) -> cached=False with a fresh timestamp

Resolution failure is the only error surfaced; every other failure
degrades to a lower-confidence record.
"""

import asyncio
from datetime import datetime

import httpx
import structlog

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import CacheWriteError, DatasetError, TransientFetchError
from gemeinde_info.core.logging import record_cache
from gemeinde_info.core.models import (
    AuthorityInfoResult,
    CacheEntry,
    CacheKey,
    CachePayload,
    CanonicalAuthority,
    ExtractedInfo,
    InfoCategory,
    ResolvedAuthority,
    SchoolAuthority,
    SchoolRegistrationInfo,
    SchoolRegistrationResult,
)
from gemeinde_info.db import get_db_session
from gemeinde_info.services.ai import create_text_generator
from gemeinde_info.services.cache import InfoCache, InMemoryInfoCache, SqlInfoCache
from gemeinde_info.services.dataset import InMemoryAuthorityDataset, SqlAuthorityDataset
from gemeinde_info.services.discovery import CandidateURL, DiscoveryManager
from gemeinde_info.services.extraction import AIExtractor, html_to_text
from gemeinde_info.services.http_client import fetch_text
from gemeinde_info.services.municipality_urls import website_for
from gemeinde_info.services.opendata import OpendataSwissClient
from gemeinde_info.services.resolver import MunicipalityResolver
from gemeinde_info.services.school import SchoolAuthorityResolver, determine_guidance
from gemeinde_info.services.url_utils import normalize_url, with_root_path

logger = structlog.get_logger()


class AuthorityInfoService:
    """
    Composes resolver, cache, discovery and extraction.

    Usage:
        service = AuthorityInfoService(resolver, cache, discovery, extractor, client)
        resolved = await service.resolve_location("8001")
        result = await service.get_authority_info(resolved)
        print(result.cached, result.info.hours["monday"])
    """

    def __init__(
        self,
        resolver: MunicipalityResolver,
        cache: InfoCache,
        discovery: DiscoveryManager,
        extractor: AIExtractor,
        client: httpx.AsyncClient,
        settings: Settings | None = None,
        schools: SchoolAuthorityResolver | None = None,
    ):
        self.resolver = resolver
        self.cache = cache
        self.discovery = discovery
        self.extractor = extractor
        self.client = client
        self.settings = settings or default_settings
        self.schools = schools or SchoolAuthorityResolver(extractor.generator)
        self.log = logger.bind(component="AuthorityInfoService")

    async def resolve_location(self, query: str, canton_hint: str | None = None) -> ResolvedAuthority:
        """
        Raises:
            NotFoundError: no resolution tier matched
        """
        return await self.resolver.resolve(query, canton_hint)

    async def get_authority_info(
        self,
        resolved: ResolvedAuthority,
        force_refresh: bool = False,
        category: InfoCategory = InfoCategory.OPERATIONAL,
    ) -> AuthorityInfoResult:
        """Cached or freshly extracted info for a resolved authority. Never raises."""
        key = CacheKey(bfs_nummer=resolved.bfs_nummer, category=category)

        entry = await self._fresh_entry(key, force_refresh)
        if entry is not None:
            return AuthorityInfoResult(
                authority=resolved,
                category=category,
                info=entry.payload,
                cached=True,
                cached_at=entry.cached_at,
            )

        info = await self.fetch_live(resolved, category)
        return AuthorityInfoResult(
            authority=resolved,
            category=category,
            info=info,
            cached=False,
            cached_at=await self._store(key, info),
        )

    async def lookup(
        self,
        query: str,
        canton_hint: str | None = None,
        force_refresh: bool = False,
        category: InfoCategory = InfoCategory.OPERATIONAL,
    ) -> AuthorityInfoResult:
        """resolve_location followed by get_authority_info."""
        resolved = await self.resolve_location(query, canton_hint)
        return await self.get_authority_info(resolved, force_refresh=force_refresh, category=category)

    async def get_school_registration_info(
        self,
        resolved: ResolvedAuthority,
        plz: str | None = None,
        address: str | None = None,
        child_age: int = 5,
        force_refresh: bool = False,
    ) -> SchoolRegistrationResult:
        """
        School authority for an address, its enrolment info and what to do
        for a child of child_age. Cached per Schulkreis. Never raises.
        """
        canonical = await self._canonical(resolved)
        school = await self.schools.resolve(canonical, plz=plz, address=address)

        scope = school.school_district.name if school.school_district else ""
        key = CacheKey(bfs_nummer=resolved.bfs_nummer, category=InfoCategory.SCHOOL_REGISTRATION, scope=scope)

        entry = await self._fresh_entry(key, force_refresh)
        if entry is not None:
            info, cached, cached_at = entry.payload, True, entry.cached_at
        else:
            info = await self.fetch_school_live(resolved, school)
            cached, cached_at = False, await self._store(key, info)

        return SchoolRegistrationResult(
            authority=resolved,
            school_authority=school,
            info=info,
            guidance=determine_guidance(child_age, info),
            cached=cached,
            cached_at=cached_at,
        )

    async def check_stores(self) -> dict[str, str]:
        """Reachability of the dataset and cache stores: "ok" or the error."""
        checks: dict[str, str] = {}
        try:
            await self.resolver.dataset.get_by_bfs_nummer(0)
            checks["dataset"] = "ok"
        except DatasetError as e:
            checks["dataset"] = e.message
        try:
            await self.cache.get(CacheKey(bfs_nummer=0))
            checks["cache"] = "ok"
        except DatasetError as e:
            checks["cache"] = e.message
        return checks

    # -------------------------------------------------------------------------
    # Cache

    # -------------------------------------------------------------------------

    async def _fresh_entry(self, key: CacheKey, force_refresh: bool) -> CacheEntry | None:
        """Fresh cache entry for key; None on miss, stale entry, forced refresh or read failure."""
        log = self.log.bind(bfs_nummer=key.bfs_nummer, category=key.category.value, scope=key.scope)

        if force_refresh:
            log.info("Forced refresh")
            record_cache(False, key.category.value, key.scope, forced=True)
            return None

        try:
            entry = await self.cache.get(key)
        except DatasetError as e:
            log.warning("Cache read failed, treating as miss", error=e.message)
            entry = None

        if entry is not None and self.cache.is_fresh(entry):
            log.info("Cache hit", cached_at=entry.cached_at.isoformat())
            record_cache(True, key.category.value, key.scope)
            return entry

        log.info("Cache miss", stale=entry is not None)
        record_cache(False, key.category.value, key.scope, stale=entry is not None)
        return None

    async def _store(self, key: CacheKey, payload: CachePayload) -> datetime:
        """Write payload, returning its cached_at; a failed write still yields a timestamp."""
        try:
            return (await self.cache.put(key, payload)).cached_at
        except CacheWriteError as e:
            self.log.error("Cache write failed, returning uncached payload", error=e.message)
            return self.cache.clock()

    # -------------------------------------------------------------------------
    # Live acquisition
    # -------------------------------------------------------------------------

    async def fetch_live(self, resolved: ResolvedAuthority, category: InfoCategory) -> ExtractedInfo:
        """Discover the best page, fetch it with the homepage and extract."""
        name = resolved.gemeinde_name
        website = website_for(name, resolved.website_url)

        candidates = await self.discovery.discover(website, name, known_pages=resolved.registration_pages)
        best = candidates[0] if candidates else None

        page_text = await self._page_text(website, best)
        return await self.extractor.extract(page_text, name, best, category=category, website=website)

    async def fetch_school_live(self, resolved: ResolvedAuthority, school: SchoolAuthority) -> SchoolRegistrationInfo:
        """Fetch the school authority's page (and registration page) and extract."""
        website = school.website_url or website_for(resolved.gemeinde_name, resolved.website_url)
        urls = [with_root_path(website)]
        if school.registration_url:
            urls.append(school.registration_url)

        page_text = await self._fetch_texts(urls)
        return await self.extractor.extract_school(
            page_text,
            school.authority_name,
            website=website,
            registration_url=school.registration_url,
        )

    async def _canonical(self, resolved: ResolvedAuthority) -> CanonicalAuthority:
        """Dataset record for resolved; a bare record when only the BFS directory knows it."""
        try:
            authority = await self.resolver.dataset.get_by_bfs_nummer(resolved.bfs_nummer)
        except DatasetError as e:
            self.log.warning("Dataset lookup failed", bfs_nummer=resolved.bfs_nummer, error=e.message)
            authority = None

        if authority is not None:
            return authority
        return CanonicalAuthority(
            bfs_nummer=resolved.bfs_nummer,
            gemeinde_name=resolved.gemeinde_name,
            kanton=resolved.kanton,
            official_website=resolved.website_url,
        )

    async def _page_text(self, website: str, best: CandidateURL | None) -> str:
        """Visible text of the best candidate and the homepage."""
        urls = [best.url] if best else []
        return await self._fetch_texts([*urls, with_root_path(website)])

    async def _fetch_texts(self, urls: list[str]) -> str:
        """Visible text of urls, each fetched once; failed fetches add nothing."""
        unique: dict[str, str] = {}
        for url in urls:
            unique.setdefault(normalize_url(url), url)

        async def _fetch(url: str) -> str:
            try:
                return html_to_text(await fetch_text(self.client, url, self.settings.page_timeout))
            except TransientFetchError as e:
                self.log.info("Page fetch failed", url=url, reason=e.reason)
                return ""

        texts = await asyncio.gather(*(_fetch(url) for url in unique.values()))
        return "\n\n".join(t for t in texts if t)


def build_authority_info_service(
    client: httpx.AsyncClient,
    settings: Settings | None = None,
) -> AuthorityInfoService:
    """Wire the service for the configured storage backend."""
    s = settings or default_settings

    if s.storage_backend == "memory":
        dataset = InMemoryAuthorityDataset.from_json()
        cache: InfoCache = InMemoryInfoCache(s)
    else:
        dataset = SqlAuthorityDataset(get_db_session)
        cache = SqlInfoCache(get_db_session, s)

    return AuthorityInfoService(
        resolver=MunicipalityResolver(dataset, OpendataSwissClient(client, s), s),
        cache=cache,
        discovery=DiscoveryManager(client, s),
        extractor=AIExtractor(create_text_generator(s), s),
        client=client,
        settings=s,
    )
