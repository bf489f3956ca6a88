"""
Discovery Module - Registration Keywords.

Multilingual vocabulary for residence registration pages on Swiss
municipality websites (DE/FR/IT/EN).
"""

from urllib.parse import unquote

REGISTRATION_KEYWORDS: dict[str, list[str]] = {
    "de": [
        "anmeldung", "einwohner", "einwohneramt", "wohnhaft", "meldung",
        "ummeldung", "anmeldeformular", "meldeformular", "wohnsitz",
    ],
    "fr": [
        "inscription", "population", "bureau des habitants",
        "déclaration de domicile", "habitant",
    ],
    "it": ["iscrizione", "anagrafe", "comune", "segnalazione domicilio"],
    "en": ["registration", "residence registration"],
}

ALL_KEYWORDS: list[str] = [kw for words in REGISTRATION_KEYWORDS.values() for kw in words]

REGISTRATION_URL_PATTERNS: list[str] = [
    "/anmeldung",
    "/einwohner",
    "/einwohneramt",
    "/einwohnerdienste",
    "/meldung",
    "/formular",
    "/dienstleistungen",
    "/services",
    "/verwaltung",
    "/kontakt",
    "/inscription",
    "/population",
    "/iscrizione",
    "/anagrafe",
]

# Keywords as they appear in URL slugs ("bureau des habitants" -> "bureau-des-habitants")
_URL_KEYWORDS = [kw.replace(" ", "-") for kw in ALL_KEYWORDS if kw != "comune"]


def matches_registration_path(url: str) -> bool:
    url_lower = unquote(url).lower()
    return any(pattern in url_lower for pattern in REGISTRATION_URL_PATTERNS)


def is_registration_candidate(url: str) -> bool:
    """URL allow-list applied before any candidate page is fetched."""
    if matches_registration_path(url):
        return True
    url_lower = unquote(url).lower()
    return any(kw in url_lower for kw in _URL_KEYWORDS)
