"""
Shared HTTP client and page fetch helper.
"""

import httpx

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import TransientFetchError


def create_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """AsyncClient with the crawler User-Agent. Timeouts are set per call."""
    settings = settings or default_settings
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.crawler_user_agent,
            "Accept-Language": "de-CH,de;q=0.9,fr;q=0.8,it;q=0.7,en;q=0.6",
        },
        follow_redirects=True,
        timeout=settings.page_timeout,
    )


async def fetch_text(client: httpx.AsyncClient, url: str, timeout: float) -> str:
    """
    GET url and return the body text.

    Raises:
        TransientFetchError: on timeout, transport error or non-200 status
    """
    try:
        response = await client.get(url, timeout=timeout)
    except httpx.TimeoutException as e:
        raise TransientFetchError(url, "timeout") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise TransientFetchError(url, f"{type(e).__name__}: {e}") from e

    if response.status_code != 200:
        raise TransientFetchError(url, f"HTTP {response.status_code}")
    return response.text
