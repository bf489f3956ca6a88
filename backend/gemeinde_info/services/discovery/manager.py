"""
Discovery Module - Manager.

Orchestrates discovery strategies:
1. Stored registration pages are returned as-is (no crawling)
2. Sitemap discovery (fast, low impact)
3. Homepage link crawl if the sitemap is missing or yields nothing

Candidate pages are fetched concurrently, bounded by a semaphore and
never more than the per-strategy cap.
"""

import asyncio

import httpx
import structlog

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import TransientFetchError
from gemeinde_info.core.logging import record_discovery
from gemeinde_info.services.discovery.base import CandidateURL, DiscoveryMethod
from gemeinde_info.services.discovery.homepage import extract_links
from gemeinde_info.services.discovery.keywords import is_registration_candidate
from gemeinde_info.services.discovery.scorer import score_page
from gemeinde_info.services.discovery.sitemap import fetch_sitemap_urls
from gemeinde_info.services.http_client import fetch_text
from gemeinde_info.services.url_utils import normalize_url, with_root_path

logger = structlog.get_logger()


def filter_candidates(urls: list[str]) -> list[str]:
    """Registration-looking URLs, deduplicated, in input order."""
    seen: set[str] = set()
    kept = []
    for url in urls:
        key = normalize_url(url)
        if key in seen or not is_registration_candidate(url):
            continue
        seen.add(key)
        kept.append(url)
    return kept


class DiscoveryManager:
    """
    Finds the pages on a municipality website most likely to describe
    residence registration and office hours.

    Usage:
        async with create_http_client() as client:
            manager = DiscoveryManager(client)
            candidates = await manager.discover("www.baden.ch", "Baden")

            for c in candidates[:5]:
                print(f"{c.score:.2f}: {c.url}")
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or default_settings
        self.log = logger.bind(component="DiscoveryManager")

    async def discover(
        self,
        domain: str,
        authority_name: str,
        known_pages: list[str] | None = None,
    ) -> list[CandidateURL]:
        """
        Discover candidate registration pages.

        Args:
            domain: Website domain or URL ("baden.ch", "https://www.baden.ch")
            authority_name: Canonical municipality name, used in scoring
            known_pages: Stored registration pages; skip crawling when given

        Returns:
            Candidates with score above the minimum, best first. Empty when
            the site is unreachable.
        """
        if known_pages:
            self.log.info("Using stored registration pages", domain=domain, count=len(known_pages))
            record_discovery(DiscoveryMethod.KNOWN.value, 0, len(known_pages), 1.0)
            return [CandidateURL(url, 1.0, DiscoveryMethod.KNOWN) for url in known_pages]

        s = self.settings
        self.log.info("Starting discovery", domain=domain, authority=authority_name)

        candidates: list[CandidateURL] = []
        method: DiscoveryMethod | None = None
        fetched = 0

        sitemap_urls = await fetch_sitemap_urls(self.client, domain, s.sitemap_timeout)
        if sitemap_urls:
            filtered = filter_candidates(sitemap_urls)[:s.sitemap_fetch_cap]
            self.log.debug("Filtered sitemap", total=len(sitemap_urls), relevant=len(filtered))
            method, fetched = DiscoveryMethod.SITEMAP, len(filtered)
            candidates = await self._score_all(filtered, authority_name, DiscoveryMethod.SITEMAP)

        if not candidates:
            links = filter_candidates(await self._homepage_links(domain))[:s.homepage_fetch_cap]
            if links:
                method, fetched = DiscoveryMethod.HOMEPAGE_CRAWL, fetched + len(links)
            candidates = await self._score_all(links, authority_name, DiscoveryMethod.HOMEPAGE_CRAWL)

        candidates.sort(key=lambda c: c.score, reverse=True)
        top_score = candidates[0].score if candidates else 0.0

        self.log.info(
            "Discovery complete",
            domain=domain,
            method=method.value if method else None,
            fetched=fetched,
            candidates=len(candidates),
            top_score=top_score,
        )
        record_discovery(method.value if method else None, fetched, len(candidates), top_score)
        return candidates

    async def _homepage_links(self, domain: str) -> list[str]:
        homepage = with_root_path(domain)
        try:
            html = await fetch_text(self.client, homepage, self.settings.homepage_timeout)
        except TransientFetchError as e:
            self.log.warning("Homepage unreachable", url=homepage, reason=e.reason)
            return []
        return extract_links(html, homepage)

    async def _score_all(
        self,
        urls: list[str],
        authority_name: str,
        method: DiscoveryMethod,
    ) -> list[CandidateURL]:
        """Fetch and score urls concurrently, keeping those above the cutoff."""
        semaphore = asyncio.Semaphore(self.settings.crawler_max_concurrent)

        async def _score(url: str) -> CandidateURL | None:
            async with semaphore:
                try:
                    html = await fetch_text(self.client, url, self.settings.candidate_timeout)
                except TransientFetchError as e:
                    self.log.debug("Candidate fetch failed", url=url, reason=e.reason)
                    return None
            score = score_page(html, url, authority_name, self.settings)
            if score <= self.settings.candidate_min_score:
                return None
            return CandidateURL(url, score, method)

        results = await asyncio.gather(*(_score(url) for url in urls))
        return [c for c in results if c is not None]
