"""
Known municipality websites.

Large cities rarely live at www.<name>.ch, so their portal and direct
residence-registration pages are listed here. Every other municipality
gets the generated www.<slug>.ch address.
"""

from typing import NamedTuple

from gemeinde_info.services.dataset.matching import normalize_name, slugify

# Path appended to a website when no registration page is known
DEFAULT_REGISTRATION_PATH = "/einwohnerdienste"


class MunicipalityUrls(NamedTuple):
    base: str
    registration: str | None = None


_ZUERICH = MunicipalityUrls(
    "https://www.stadt-zuerich.ch",
    "https://www.stadt-zuerich.ch/portal/de/index/politik_u_recht/einwohnerdienste/einreise_aufenthalt/wohnsitzanmeldung.html",
)
_GENEVE = MunicipalityUrls(
    "https://www.ville-geneve.ch",
    "https://www.ville-geneve.ch/themes/etat-civil-population/etrangers/inscription-arrivee/",
)
_LUZERN = MunicipalityUrls(
    "https://www.stadtluzern.ch",
    "https://www.stadtluzern.ch/themen/buerger-verwaltung/einwohnerdienste/wohnsitzanmeldung",
)
_ST_GALLEN = MunicipalityUrls(
    "https://www.stadt.sg.ch",
    "https://www.stadt.sg.ch/themen/buerger-verwaltung/einwohnerdienste/wohnsitzanmeldung",
)
_BIEL = MunicipalityUrls(
    "https://www.biel-bienne.ch",
    "https://www.biel-bienne.ch/fr/administration/population/anmelden-wohnsitz.html",
)
_FRIBOURG = MunicipalityUrls(
    "https://www.fr.ch",
    "https://www.fr.ch/de/themen/population/buergeramt/anmeldung-umzug",
)
_NEUCHATEL = MunicipalityUrls(
    "https://www.ne.ch",
    "https://www.ne.ch/fr/themes/etat-civil-population/residence/declaration-residence",
)

# Keys are normalize_name() output, aliases share one entry
MUNICIPALITY_URLS: dict[str, MunicipalityUrls] = {
    "zuerich": _ZUERICH,
    "zurich": _ZUERICH,
    "geneve": _GENEVE,
    "genf": _GENEVE,
    "geneva": _GENEVE,
    "basel": MunicipalityUrls(
        "https://www.bs.ch",
        "https://www.bs.ch/de/buerger/dienstleistungen/wohnsitz/wohnsitz-an-und-abmeldung.html",
    ),
    "bern": MunicipalityUrls(
        "https://www.bern.ch",
        "https://www.bern.ch/themen/leben-in-bern/wohnen/einwohnerdienste/anmeldung",
    ),
    "lausanne": MunicipalityUrls(
        "https://www.lausanne.ch",
        "https://www.lausanne.ch/vie-pratique/population/declaration-de-residence.html",
    ),
    "winterthur": MunicipalityUrls(
        "https://stadt.winterthur.ch",
        "https://stadt.winterthur.ch/themen/buerger-verwaltung/einwohnerdienste/wohnsitzanmeldung",
    ),
    "luzern": _LUZERN,
    "lucerne": _LUZERN,
    "st. gallen": _ST_GALLEN,
    "st gallen": _ST_GALLEN,
    "sankt gallen": _ST_GALLEN,
    "lugano": MunicipalityUrls(
        "https://www.lugano.ch",
        "https://www.lugano.ch/temi/popolazione/anagrafe/iscrizione-anagrafica",
    ),
    "biel": _BIEL,
    "bienne": _BIEL,
    "biel/bienne": _BIEL,
    "thun": MunicipalityUrls(
        "https://www.thun.ch",
        "https://www.thun.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "koeniz": MunicipalityUrls(
        "https://www.koeniz.ch",
        "https://www.koeniz.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "schaffhausen": MunicipalityUrls(
        "https://www.schaffhausen.ch",
        "https://www.schaffhausen.ch/de/verwaltung/einwohnerdienste/wohnsitzanmeldung",
    ),
    "fribourg": _FRIBOURG,
    "freiburg": _FRIBOURG,
    "chur": MunicipalityUrls(
        "https://www.chur.ch",
        "https://www.chur.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "neuchatel": _NEUCHATEL,
    "neuenburg": _NEUCHATEL,
    "zug": MunicipalityUrls(
        "https://www.stadtzug.ch",
        "https://www.stadtzug.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "sion": MunicipalityUrls(
        "https://www.sion.ch",
        "https://www.sion.ch/themes/population/etat-civil/inscription-de-residence",
    ),
    "aarau": MunicipalityUrls(
        "https://www.aarau.ch",
        "https://www.aarau.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "baden": MunicipalityUrls(
        "https://www.baden.ch",
        "https://www.baden.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "wil": MunicipalityUrls(
        "https://www.stadtwil.ch",
        "https://www.stadtwil.ch/verwaltung/einwohnerdienste/anmeldung",
    ),
    "bellinzona": MunicipalityUrls(
        "https://www.bellinzona.ch",
        "https://www.bellinzona.ch/temi/popolazione/anagrafe/iscrizione-anagrafica",
    ),
    "locarno": MunicipalityUrls(
        "https://www.locarno.ch",
        "https://www.locarno.ch/temi/popolazione/anagrafe/iscrizione-anagrafica",
    ),
    "montreux": MunicipalityUrls(
        "https://www.montreux.ch",
        "https://www.montreux.ch/services/etat-civil/declaration-de-residence",
    ),
    "allschwil": MunicipalityUrls(
        "https://www.allschwil.ch",
        "https://www.allschwil.ch/de/verwaltung/oeffnungszeiten/",
    ),
}


def lookup_urls(name: str) -> MunicipalityUrls | None:
    return MUNICIPALITY_URLS.get(normalize_name(name))


def generated_website(name: str) -> str:
    """Conventional address for municipalities without a listed website."""
    return f"https://www.{slugify(name)}.ch"


def get_municipality_url(name: str | None, use_registration_page: bool = True) -> str | None:
    """
    Website (or direct registration page) for a municipality.

    Args:
        name: Municipality name in any spelling
        use_registration_page: Prefer the residence-registration page when listed

    Returns:
        URL, or None for an empty name
    """
    if not name or not name.strip():
        return None

    known = lookup_urls(name)
    if known:
        if use_registration_page and known.registration:
            return known.registration
        return known.base

    website = generated_website(name)
    if use_registration_page:
        return website + DEFAULT_REGISTRATION_PATH
    return website


def website_for(name: str, stored_website: str | None = None) -> str:
    """Stored website wins, then the table, then the generated address."""
    if stored_website:
        return stored_website
    known = lookup_urls(name)
    return known.base if known else generated_website(name)


def fallback_registration_url(name: str, website: str | None = None) -> str:
    """Deterministic registration URL used when discovery found nothing."""
    known = lookup_urls(name)
    if known and known.registration:
        return known.registration
    return website_for(name, website).rstrip("/") + DEFAULT_REGISTRATION_PATH
