"""
Discovery Module for Gemeinde Info.

Finds registration / office-hours pages on municipality websites.

Main components:
- DiscoveryManager: Orchestrates discovery strategies
- Sitemap / homepage strategies: produce candidate URLs
- Scorer: Unified page scoring

Usage:
    from gemeinde_info.services.discovery import DiscoveryManager

    async with create_http_client() as client:
        manager = DiscoveryManager(client)
        candidates = await manager.discover("www.baden.ch", "Baden")
"""

from gemeinde_info.services.discovery.base import CandidateURL, DiscoveryMethod
from gemeinde_info.services.discovery.homepage import extract_links
from gemeinde_info.services.discovery.keywords import (
    REGISTRATION_KEYWORDS,
    REGISTRATION_URL_PATTERNS,
    is_registration_candidate,
)
from gemeinde_info.services.discovery.manager import DiscoveryManager, filter_candidates
from gemeinde_info.services.discovery.scorer import score_page
from gemeinde_info.services.discovery.sitemap import fetch_sitemap_urls, parse_sitemap

__all__ = [
    # Main manager
    "DiscoveryManager",

    # Result types
    "CandidateURL",
    "DiscoveryMethod",

    # Utilities
    "REGISTRATION_KEYWORDS",
    "REGISTRATION_URL_PATTERNS",
    "is_registration_candidate",
    "filter_candidates",
    "score_page",
    "extract_links",
    "fetch_sitemap_urls",
    "parse_sitemap",
]
