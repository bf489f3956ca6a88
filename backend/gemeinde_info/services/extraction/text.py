"""
Page text preparation for AI extraction.

Turns fetched HTML into visible text and keeps only the sentences that talk
about opening hours, contact details or registration, bounded to a fixed
character budget.
"""

import re

from bs4 import BeautifulSoup

# Elements that never carry office-hours or contact text
REMOVE_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]

RELEVANT_KEYWORDS = [
    # German
    "öffnungszeit", "schalter", "kontakt", "einwohner", "verwaltung",
    "anmeldung", "telefon", "montag", "freitag",
    # French
    "horaire", "ouverture", "habitant", "contact", "inscription", "lundi",
    # Italian
    "orari", "sportello", "anagrafe", "iscrizione", "lunedì",
    # English
    "office hour", "opening hour", "administrat", "registration",
    # Contact details
    "e-mail", "email", "tel.", "@",
]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


def html_to_text(html: str) -> str:
    """Visible text of an HTML document with whitespace collapsed."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(REMOVE_TAGS):
        tag.decompose()
    return re.sub(r"\s+", " ", soup.get_text(" ")).strip()


def relevant_excerpt(text: str, max_chars: int = 4000) -> str:
    """
    Sentences mentioning hours/contact keywords, joined and truncated.

    Falls back to the head of the text when no sentence matches, so the
    model still sees something from pages with unusual wording.
    """
    text = (text or "").strip()
    if not text:
        return ""

    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    relevant = [s for s in sentences if any(kw in s.lower() for kw in RELEVANT_KEYWORDS)]

    excerpt = " ".join(relevant) if relevant else text
    return excerpt[:max_chars]
