"""
Discovery Module - Sitemap Strategy.

Fetches the site's sitemap from a few well-known paths and lists the page
URLs it contains. Sitemap indexes are followed one level deep.
"""

import re
from xml.etree import ElementTree

import httpx
import structlog

from gemeinde_info.core.exceptions import TransientFetchError
from gemeinde_info.services.http_client import fetch_text
from gemeinde_info.services.url_utils import site_base

logger = structlog.get_logger()

SITEMAP_PATHS = ["/sitemap.xml", "/sitemap_index.xml", "/sitemap-1.xml"]

SITEMAP_NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}

# Child sitemaps followed from an index
MAX_CHILD_SITEMAPS = 3


def looks_like_sitemap(content: str) -> bool:
    """Reject HTML error pages and bot challenges served with status 200."""
    head = content.lstrip()[:1000]
    return head.startswith("<?xml") or "<urlset" in head or "<sitemapindex" in head or "<loc>" in head


def parse_sitemap(xml_content: str) -> tuple[list[str], list[str]]:
    """
    Parse <loc> entries from sitemap XML.

    Returns:
        (page_urls, child_sitemap_urls). Malformed XML falls back to a
        regex over <loc> tags, which yields page URLs only.
    """
    urls: list[str] = []
    children: list[str] = []

    try:
        root = ElementTree.fromstring(xml_content.strip())
    except ElementTree.ParseError:
        urls = [u.strip() for u in re.findall(r"<loc>\s*([^<]+?)\s*</loc>", xml_content, re.IGNORECASE)]
        return urls, children

    for loc in root.findall(".//sm:sitemap/sm:loc", SITEMAP_NS):
        if loc.text:
            children.append(loc.text.strip())

    for loc in root.findall(".//sm:url/sm:loc", SITEMAP_NS):
        if loc.text:
            urls.append(loc.text.strip())

    # Sitemaps without the namespace
    if not urls and not children:
        for loc in root.iter("loc"):
            if loc.text:
                urls.append(loc.text.strip())

    return urls, children


async def fetch_sitemap_urls(
    client: httpx.AsyncClient,
    domain: str,
    timeout: float,
) -> list[str]:
    """
    Try each sitemap path in order; the first one that yields URLs wins.

    Returns:
        Page URLs, or [] when no sitemap is reachable
    """
    log = logger.bind(component="SitemapDiscovery", domain=domain)
    base = site_base(domain)

    for path in SITEMAP_PATHS:
        url = base + path
        try:
            content = await fetch_text(client, url, timeout)
        except TransientFetchError as e:
            log.debug("Sitemap fetch failed", url=url, reason=e.reason)
            continue

        if not looks_like_sitemap(content):
            log.debug("Not a sitemap", url=url)
            continue

        urls, children = parse_sitemap(content)
        for child in children[:MAX_CHILD_SITEMAPS]:
            try:
                child_urls, _ = parse_sitemap(await fetch_text(client, child, timeout))
            except TransientFetchError as e:
                log.debug("Child sitemap fetch failed", url=child, reason=e.reason)
                continue
            urls.extend(child_urls)

        if urls:
            log.info("Found sitemap", url=url, url_count=len(urls))
            return urls

    log.info("No sitemap found")
    return []
