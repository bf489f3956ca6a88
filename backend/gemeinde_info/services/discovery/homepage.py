"""
Discovery Module - Homepage Link Strategy.

Depth-1 crawl: collects same-domain links from the homepage.
"""

from bs4 import BeautifulSoup

from gemeinde_info.services.url_utils import absolutize, is_same_domain, normalize_url


def extract_links(html: str, page_url: str) -> list[str]:
    """
    Absolute, deduplicated same-domain links in document order.

    Relative hrefs are resolved against page_url; fragments, mailto: and
    other non-HTTP links are dropped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    seen: set[str] = set()
    links: list[str] = []

    for anchor in soup.find_all("a", href=True):
        url = absolutize(anchor["href"], page_url)
        if not url or not is_same_domain(url, page_url):
            continue
        key = normalize_url(url)
        if key in seen or key == normalize_url(page_url):
            continue
        seen.add(key)
        links.append(url.split("#", 1)[0])

    return links
