"""
URL helpers for crawling municipality websites.
"""

import re
from urllib.parse import parse_qs, urlencode, urljoin, urlparse, urlunparse

# Tracking and session parameters dropped during normalization
STRIP_PARAMS = {
    "fbclid", "gclid", "session_id", "sessionid", "sid", "ref", "_ga", "_gl",
}

# Link targets that never lead to an HTML page on the same site
SKIP_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")


def ensure_scheme(domain_or_url: str) -> str:
    """'gemeinde.ch' -> 'https://gemeinde.ch'."""
    value = domain_or_url.strip()
    if not re.match(r"^https?://", value, re.IGNORECASE):
        value = "https://" + value
    return value


def site_base(url: str) -> str:
    """Scheme and host of url, without path."""
    parsed = urlparse(ensure_scheme(url))
    return f"{parsed.scheme}://{parsed.netloc}"


def with_root_path(url: str) -> str:
    """'baden.ch' -> 'https://baden.ch/'; URLs with a path are kept."""
    value = ensure_scheme(url)
    parsed = urlparse(value)
    if parsed.path:
        return value
    return urlunparse(parsed._replace(path="/"))


def host_of(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def is_same_domain(url: str, base_url: str) -> bool:
    """True if url is on base_url's host, ignoring a leading www."""
    return host_of(url) == host_of(ensure_scheme(base_url))


def normalize_url(url: str) -> str:
    """Normalize a URL for deduplication.

    Lowercases the host, drops the fragment and tracking parameters,
    collapses double slashes and strips a trailing slash.
    """
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    netloc = f"{host}:{parsed.port}" if parsed.port and parsed.port not in (80, 443) else host

    path = re.sub(r"/+", "/", parsed.path)
    if len(path) > 1:
        path = path.rstrip("/")
    path = path or "/"

    query = ""
    if parsed.query:
        params = parse_qs(parsed.query, keep_blank_values=True)
        kept = {
            k: v for k, v in params.items()
            if k.lower() not in STRIP_PARAMS and not k.lower().startswith("utm_")
        }
        query = urlencode(sorted(kept.items()), doseq=True)

    return urlunparse((parsed.scheme.lower(), netloc, path, "", query, ""))


def absolutize(href: str, page_url: str) -> str | None:
    """Resolve a link against the page it was found on, None for non-HTTP links."""
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(SKIP_SCHEMES):
        return None
    absolute = urljoin(page_url, href)
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute
