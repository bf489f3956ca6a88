"""
Name normalization and similarity for municipality matching.
"""

import re
from collections.abc import Callable
from difflib import SequenceMatcher

# Transliteration used by Swiss municipalities in URLs and e-mail addresses
TRANSLITERATION = {
    "ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss",
    "é": "e", "è": "e", "ê": "e", "ë": "e",
    "à": "a", "â": "a", "ô": "o", "î": "i", "ï": "i",
    "ç": "c",
}

SimilarityFn = Callable[[str, str], float]


def normalize_name(name: str) -> str:
    """Lowercase, transliterate umlauts/accents, collapse whitespace."""
    text = name.strip().lower()
    for char, replacement in TRANSLITERATION.items():
        text = text.replace(char, replacement)
    return re.sub(r"\s+", " ", text)


def contains_as_words(haystack: str, needle: str) -> bool:
    """True if needle occurs in haystack on word boundaries.

    "st. gallen" is contained in "stadt st. gallen", but "doettingen" is
    not contained in "kleindoettingen".
    """
    if not needle:
        return False
    pattern = r"(?<![a-z0-9])" + re.escape(needle) + r"(?![a-z0-9])"
    return re.search(pattern, haystack) is not None


def name_similarity(a: str, b: str) -> float:
    """SequenceMatcher ratio on normalized names, 0.0 - 1.0."""
    return SequenceMatcher(None, normalize_name(a), normalize_name(b)).ratio()


def slugify(name: str) -> str:
    """Municipality name as used in generated domains ("Küsnacht (ZH)" -> "kuesnacht")."""
    text = normalize_name(re.sub(r"\(.*?\)", "", name))
    text = re.sub(r"\s+", "-", text.strip())
    return re.sub(r"[^a-z0-9-]", "", text)
