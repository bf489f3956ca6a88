"""
Open civic dataset client.

Downloads the official municipality directory published by the Federal
Statistical Office (BFS) via opendata.swiss and looks municipalities up by
name. Used by the resolver as its last tier for places missing from the
canonical dataset.
"""

import csv
import io
import re
import time
from collections.abc import Callable

import httpx
import structlog

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import DatasetError
from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.services.dataset.matching import contains_as_words, normalize_name
from gemeinde_info.services.municipality_urls import website_for
from gemeinde_info.services.retry_utils import with_retries

logger = structlog.get_logger()

# Column name variants seen across BFS directory exports
BFS_NUMBER_COLUMNS = ("GDENR", "BFS_NR", "BFS_NUMMER", "BFS-Nr", "bfs_nummer")
NAME_COLUMNS = ("GDENAME", "GEMEINDE", "Gemeinde", "NAME", "gemeinde_name")
CANTON_COLUMNS = ("GDEKT", "KANTON", "Kanton", "KT", "GDEKTNR", "kanton")
PLZ_COLUMNS = ("PLZ", "PLZ4", "plz")


def _first(row: dict[str, str], columns: tuple[str, ...]) -> str | None:
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return None


def parse_municipality_csv(text: str) -> list[CanonicalAuthority]:
    """
    Parse the semicolon separated BFS directory.

    Rows missing a number, name or canton are skipped. The website is the
    listed or generated www.<slug>.ch address.
    """
    text = text.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text), delimiter=";")
    authorities = []

    for row in reader:
        number = _first(row, BFS_NUMBER_COLUMNS)
        name = _first(row, NAME_COLUMNS)
        canton = _first(row, CANTON_COLUMNS)
        if not number or not name or not canton:
            continue
        try:
            bfs_nummer = int(number)
        except ValueError:
            continue
        if bfs_nummer <= 0:
            continue

        plz = _first(row, PLZ_COLUMNS)
        authorities.append(CanonicalAuthority(
            bfs_nummer=bfs_nummer,
            gemeinde_name=name,
            kanton=canton.upper(),
            plz=re.findall(r"\b\d{4}\b", plz) if plz else [],
            official_website=website_for(name),
        ))

    return authorities


class OpendataSwissClient:
    """
    Lazily downloads and memoizes the municipality directory.

    A failed download is remembered for `opendata_failure_ttl` seconds so
    an outage costs one download attempt per window, not one per query.

    Usage:
        client = OpendataSwissClient(http_client)
        authority = await client.find_by_name("Allschwil", canton="BL")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.settings = settings or default_settings
        self.monotonic = monotonic
        self.log = logger.bind(component="OpendataSwissClient")
        self._authorities: list[CanonicalAuthority] | None = None
        self._failure: str | None = None
        self._retry_at = 0.0

    async def load(self) -> list[CanonicalAuthority]:
        """
        Download and parse the directory once per client.

        Raises:
            DatasetError: when the download fails or yields no rows, and
                for every call within the failure window afterwards
        """
        if self._authorities is not None:
            return self._authorities

        if self._failure is not None and self.monotonic() < self._retry_at:
            raise DatasetError(f"Municipality directory unavailable: {self._failure}")

        try:
            authorities = await self._download()
        except DatasetError as e:
            self._failure = e.message
            self._retry_at = self.monotonic() + self.settings.opendata_failure_ttl
            self.log.warning(
                "Municipality directory download failed",
                error=e.message,
                retry_in_s=self.settings.opendata_failure_ttl,
            )
            raise

        self.log.info("Loaded municipality directory", count=len(authorities))
        self._failure = None
        self._authorities = authorities
        return authorities

    async def _download(self) -> list[CanonicalAuthority]:
        url = self.settings.opendata_municipality_url

        async def _get() -> httpx.Response:
            return await self.client.get(url, timeout=self.settings.opendata_timeout)

        try:
            response = await with_retries(_get, max_attempts=2, backoff_base=0.5)
        except httpx.HTTPError as e:
            raise DatasetError(f"Municipality directory download failed: {e}") from e

        if response.status_code != 200:
            raise DatasetError(f"Municipality directory returned HTTP {response.status_code}")

        authorities = parse_municipality_csv(response.text)
        if not authorities:
            raise DatasetError("Municipality directory contained no rows")
        return authorities

    async def find_by_name(self, name: str, canton: str | None = None) -> CanonicalAuthority | None:
        """
        Normalized name, then postal code, then whole-word partial match.

        Municipalities in `canton` are ranked first within each step; the
        hint never excludes a match elsewhere.
        """
        query = normalize_name(name)
        if not query:
            return None

        authorities = await self.load()
        if canton:
            hint = canton.strip().upper()
            authorities = sorted(authorities, key=lambda a: a.kanton != hint)

        for authority in authorities:
            if normalize_name(authority.gemeinde_name) == query:
                return authority

        if re.fullmatch(r"\d{4}", query):
            for authority in authorities:
                if query in authority.plz:
                    return authority

        partial = [
            a for a in authorities
            if contains_as_words(normalize_name(a.gemeinde_name), query)
            or contains_as_words(query, normalize_name(a.gemeinde_name))
        ]
        if not partial:
            return None

        # Closest in length to the query first; sort is stable so the canton order holds
        partial.sort(key=lambda a: abs(len(normalize_name(a.gemeinde_name)) - len(query)))
        return partial[0]
