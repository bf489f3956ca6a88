"""
Discovery Module - Base Data Classes.

Shared types used across discovery strategies.
"""

from dataclasses import dataclass
from enum import Enum


class DiscoveryMethod(str, Enum):
    """How a candidate page was found."""
    SITEMAP = "sitemap"                # Listed in sitemap.xml
    HOMEPAGE_CRAWL = "homepage_crawl"  # Linked from the homepage
    KNOWN = "known"                    # Stored registration page


@dataclass
class CandidateURL:
    """
    A page that may hold registration / opening-hours info.

    Score is in [0, 1]; lists of candidates are kept sorted descending.
    """
    url: str
    score: float
    method: DiscoveryMethod

    def to_dict(self) -> dict:
        return {"url": self.url, "score": round(self.score, 3), "method": self.method.value}
