"""
Discovery Module - Page Scoring.

Single scoring algorithm used by all discovery strategies. Scores are
additive, capped at 1.0, with weights taken from settings.
"""

from bs4 import BeautifulSoup

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.services.discovery.keywords import ALL_KEYWORDS, matches_registration_path

JSON_LD_SERVICE_MARKERS = ("service", "contactpoint")


def visible_text(soup: BeautifulSoup) -> str:
    """Lowercased page text without script/style content."""
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.extract()
    return " ".join(soup.get_text(" ").split()).lower()


def score_page(
    html: str,
    url: str,
    authority_name: str,
    settings: Settings | None = None,
) -> float:
    """
    Score a fetched page for relevance to residence registration.

    Signals:
    - Municipality name in visible text
    - Registration keyword in <title> or first <h1> (counted once)
    - Each registration keyword in the visible text
    - Registration path in the URL (counted once)
    - JSON-LD blocks, extra for service / ContactPoint data
    - Registration keyword in the meta description

    Returns:
        Score in [0.0, 1.0]
    """
    s = settings or default_settings
    soup = BeautifulSoup(html or "", "html.parser")
    score = 0.0

    title = soup.title.get_text(" ").lower() if soup.title else ""
    h1_tag = soup.find("h1")
    h1 = h1_tag.get_text(" ").lower() if h1_tag else ""

    meta = soup.find("meta", attrs={"name": lambda v: v and v.lower() == "description"})
    description = (meta.get("content") or "").lower() if meta else ""

    json_ld_blocks = [
        (tag.string or tag.get_text() or "").lower()
        for tag in soup.find_all("script", attrs={"type": "application/ld+json"})
    ]

    # Must run last, strips script tags from the tree
    text = visible_text(soup)

    if authority_name and authority_name.lower() in text:
        score += s.score_name_in_text

    if any(kw in title or kw in h1 for kw in ALL_KEYWORDS):
        score += s.score_keyword_in_heading

    score += s.score_keyword_in_body * sum(1 for kw in ALL_KEYWORDS if kw in text)

    if matches_registration_path(url):
        score += s.score_registration_path

    if json_ld_blocks:
        score += s.score_json_ld
        for block in json_ld_blocks:
            if any(marker in block for marker in JSON_LD_SERVICE_MARKERS):
                score += s.score_json_ld_service

    if description and any(kw in description for kw in ALL_KEYWORDS):
        score += s.score_meta_description

    return min(score, 1.0)
