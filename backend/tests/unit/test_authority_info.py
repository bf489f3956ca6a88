"""
Tests for the AuthorityInfoService request flow.

Resolver, discovery, page fetch, extraction and cache run for real against
a fake web, a scripted model and a manual clock.
"""

import json
from contextlib import asynccontextmanager

import pytest

from gemeinde_info.core.exceptions import CacheWriteError, DatasetError, NotFoundError
from gemeinde_info.core.models import InfoCategory, ResolutionSource, ResolvedAuthority, SchoolAuthorityType
from gemeinde_info.services.authority_info import AuthorityInfoService, build_authority_info_service
from gemeinde_info.services.cache import InMemoryInfoCache
from gemeinde_info.services.discovery import DiscoveryManager
from gemeinde_info.services.extraction import AIExtractor

pytestmark = pytest.mark.asyncio

ZURICH = "https://www.stadt-zuerich.ch"
ZURICH_PAGE = f"{ZURICH}/einwohnerdienste/anmeldung"

ZURICH_WEB = {
    f"{ZURICH}/sitemap.xml": (
        '<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"<url><loc>{ZURICH_PAGE}</loc></url>"
        f"<url><loc>{ZURICH}/kultur/museen</loc></url>"
        "</urlset>"
    ),
    ZURICH_PAGE: (
        "<html><head><title>Anmeldung beim Personenmeldeamt</title></head><body>"
        "<h1>Wohnsitz anmelden in Zürich</h1>"
        "<p>Öffnungszeiten: Montag bis Freitag 07:30-12:00 und 13:00-16:30.</p>"
        "<p>Telefon 044 412 31 11</p></body></html>"
    ),
    f"{ZURICH}/": "<html><body><p>Stadt Zürich Kontakt: stadt@zuerich.ch</p></body></html>",
}

ZURICH_RESPONSE = json.dumps({
    **{day: {"morning": "07:30-12:00", "afternoon": "13:00-16:30"}
       for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
    "saturday": {"closed": True},
    "sunday": {"closed": True},
    "phone": "044 412 31 11",
    "email": "stadt@zuerich.ch",
    "confidence": 0.85,
})


@pytest.fixture
def make_service(resolver, settings, clock, make_generator):
    """Yields a factory building a service over a FakeWeb; clients are closed on exit."""

    @asynccontextmanager
    async def _make(web, response=ZURICH_RESPONSE, cache=None):
        generator = make_generator(response)
        async with web.client() as client:
            service = AuthorityInfoService(
                resolver=resolver,
                cache=cache if cache is not None else InMemoryInfoCache(settings, clock),
                discovery=DiscoveryManager(client, settings),
                extractor=AIExtractor(generator, settings),
                client=client,
                settings=settings,
            )
            service.generator = generator
            yield service

    return _make


class TestCaching:

    async def test_second_lookup_served_from_cache(self, make_service, make_web, clock):
        web = make_web(ZURICH_WEB)
        async with make_service(web) as service:
            first = await service.lookup("8001")
            clock.advance(minutes=5)
            second = await service.lookup("8001")

        assert first.authority.gemeinde_name == "Zürich"
        assert first.cached is False
        assert second.cached is True
        assert second.cached_at == first.cached_at
        assert second.info == first.info
        assert len(service.generator.prompts) == 1

    async def test_live_result(self, make_service, make_web):
        web = make_web(ZURICH_WEB)
        async with make_service(web) as service:
            result = await service.lookup("8001")

        info = result.info
        assert info.hours["monday"].morning == "07:30-12:00"
        assert info.hours["saturday"].closed
        assert info.phone == "044 412 31 11"
        assert info.registration_url == ZURICH_PAGE
        assert info.website == ZURICH
        assert f"{ZURICH}/kultur/museen" not in web.requests

    async def test_force_refresh_bypasses_cache(self, make_service, make_web, clock):
        async with make_service(make_web(ZURICH_WEB)) as service:
            resolved = await service.resolve_location("8001")
            first = await service.get_authority_info(resolved)
            clock.advance(minutes=1)
            refreshed = await service.get_authority_info(resolved, force_refresh=True)
            after = await service.get_authority_info(resolved)

        assert refreshed.cached is False
        assert refreshed.cached_at > first.cached_at
        assert after.cached is True
        assert after.cached_at == refreshed.cached_at
        assert len(service.generator.prompts) == 2

    async def test_stale_entry_refetched(self, make_service, make_web, clock):
        async with make_service(make_web(ZURICH_WEB)) as service:
            first = await service.lookup("8001")
            clock.advance(hours=4, seconds=1)
            second = await service.lookup("8001")

        assert second.cached is False
        assert second.cached_at > first.cached_at

    async def test_categories_cached_separately(self, make_service, make_web):
        async with make_service(make_web(ZURICH_WEB)) as service:
            await service.lookup("8001")
            registration = await service.lookup("8001", category=InfoCategory.REGISTRATION_PROCESS)

        assert registration.cached is False
        assert registration.category == InfoCategory.REGISTRATION_PROCESS
        assert "required_documents" in service.generator.prompts[-1]

    async def test_cache_write_failure_still_returns_payload(self, make_service, make_web, settings, clock):

        class ReadOnlyCache(InMemoryInfoCache):
            async def put(self, key, payload):
                raise CacheWriteError("disk full")

        async with make_service(make_web(ZURICH_WEB), cache=ReadOnlyCache(settings, clock)) as service:
            result = await service.lookup("8001")

        assert result.cached is False
        assert result.cached_at == clock()
        assert result.info.phone == "044 412 31 11"

    async def test_cache_read_failure_is_a_miss(self, make_service, make_web, settings, clock):

        class BrokenCache(InMemoryInfoCache):
            async def get(self, key):
                raise DatasetError("connection refused")

        async with make_service(make_web(ZURICH_WEB), cache=BrokenCache(settings, clock)) as service:
            result = await service.lookup("8001")

        assert result.cached is False
        assert result.info.phone == "044 412 31 11"


class TestDegradation:

    async def test_sub_locality_lookup(self, make_service, make_web):
        async with make_service(make_web()) as service:
            result = await service.lookup("Kleindöttingen", canton_hint="AG")

        assert result.authority.gemeinde_name == "Böttstein"
        assert result.authority.ortsteil == "Kleindöttingen"
        assert result.authority.bfs_nummer == 4023

    async def test_unreachable_site_yields_default_record(self, make_service, make_web):
        site = "https://www.boettstein.ch"
        web = make_web(failing={f"{site}/", f"{site}/sitemap.xml"})
        async with make_service(web) as service:
            resolved = await service.resolve_location("Böttstein")
            candidates = await service.discovery.discover(site, "Böttstein")
            result = await service.get_authority_info(resolved)

        assert candidates == []
        assert result.info.is_fallback
        assert result.info.confidence == 0.5
        assert result.info.registration_url == f"{site}/einwohnerdienste"
        assert result.info.hours["monday"].morning == "08:00-12:00"
        assert service.generator.prompts == []

    async def test_malformed_model_output(self, make_service, make_web):
        async with make_service(make_web(ZURICH_WEB), response="I am not JSON") as service:
            result = await service.lookup("Zürich")

        assert result.info.confidence <= 0.5
        assert result.info.registration_url == ZURICH_PAGE

    async def test_stored_registration_pages_skip_discovery(self, make_service, make_web):
        known = "https://www.bs.ch/de/buerger/dienstleistungen/wohnsitz/wohnsitz-an-und-abmeldung.html"
        web = make_web({known: "<p>Öffnungszeiten Montag 08:00-12:00</p>"})
        async with make_service(web) as service:
            result = await service.lookup("Basel")

        assert not web.fetched("https://www.bs.ch/sitemap")
        assert known in web.requests
        assert result.info.registration_url == known

    async def test_not_found_propagates(self, make_service, make_web):
        async with make_service(make_web()) as service:
            with pytest.raises(NotFoundError):
                await service.lookup("Xyzzyqwertz")


BERN_SCHOOL = "https://www.bern.ch/politik-und-verwaltung/stadtverwaltung/bss/schulamt"

SCHOOL_RESPONSE = json.dumps({
    "registration_process": "Register at the Kreisschulbehörde after moving in",
    "required_documents": ["Geburtsschein", "Wohnsitzbestätigung"],
    "age_requirements": {"kindergarten": "Age 4 by July 31", "primary": "Age 6 by July 31"},
    "confidence": 0.8,
})

SCHOOL_PAGE = (
    "<html><body><h1>Schulanmeldung</h1><p>Melden Sie Ihr Kind nach dem Zuzug bei der "
    "Kreisschulbehörde an. Kindergarten ab 4 Jahren, Primarschule ab 6 Jahren. Mitbringen: "
    "Geburtsschein und Wohnsitzbestätigung.</p></body></html>"
)


class TestSchoolRegistration:

    async def test_district_by_postal_code(self, make_service, make_web):
        web = make_web({f"{ZURICH}/": SCHOOL_PAGE})
        async with make_service(web, response=SCHOOL_RESPONSE) as service:
            resolved = await service.resolve_location("Zürich")
            result = await service.get_school_registration_info(resolved, plz="8003", child_age=7)

        assert result.school_authority.authority_name == "Schulkreis Uto"
        assert result.school_authority.authority_type == "schulkreis"
        assert result.info.registration_process.startswith("Register at the Kreisschulbehörde")
        assert result.guidance.level == "primary"
        assert result.guidance.age_requirement == "Age 6 by July 31"
        assert result.cached is False
        assert f"{ZURICH}/" in web.requests

    async def test_cached_per_district(self, make_service, make_web, clock):
        web = make_web({f"{ZURICH}/": SCHOOL_PAGE})
        async with make_service(web, response=SCHOOL_RESPONSE) as service:
            resolved = await service.resolve_location("Zürich")
            first = await service.get_school_registration_info(resolved, plz="8003")
            clock.advance(days=6)
            same_district = await service.get_school_registration_info(resolved, plz="8038", child_age=3)
            other_district = await service.get_school_registration_info(resolved, plz="8050")

        assert same_district.cached is True
        assert same_district.cached_at == first.cached_at
        assert same_district.guidance.level == "too_young"
        assert other_district.cached is False
        assert other_district.school_authority.authority_name == "Schulkreis Glattal"
        assert len(service.generator.prompts) == 2

    async def test_school_cache_expires_after_a_week(self, make_service, make_web, clock):
        async with make_service(make_web({f"{ZURICH}/": SCHOOL_PAGE}), response=SCHOOL_RESPONSE) as service:
            resolved = await service.resolve_location("8003")
            await service.get_school_registration_info(resolved, plz="8003")
            clock.advance(days=7, seconds=1)
            again = await service.get_school_registration_info(resolved, plz="8003")

        assert again.cached is False

    async def test_school_administration_page_fetched(self, make_service, make_web):
        web = make_web({BERN_SCHOOL: SCHOOL_PAGE})
        async with make_service(web, response=SCHOOL_RESPONSE) as service:
            resolved = await service.resolve_location("Bern")
            result = await service.get_school_registration_info(resolved, plz="3011", child_age=5)

        assert result.school_authority.authority_name == "Schulverwaltung Bern"
        assert result.school_authority.website_url == BERN_SCHOOL
        assert BERN_SCHOOL in web.requests
        assert not result.info.is_fallback
        assert result.guidance.level == "kindergarten"

    async def test_unreachable_school_site_yields_default_record(self, make_service, make_web):
        async with make_service(make_web()) as service:
            resolved = await service.resolve_location("Kleindöttingen", canton_hint="AG")
            result = await service.get_school_registration_info(resolved)

        assert result.school_authority.authority_name == "Schulverwaltung Böttstein"
        assert result.info.is_fallback
        assert result.info.registration_deadline == "Contact authority for details"
        assert service.generator.prompts == []

    async def test_authority_known_only_to_directory(self, make_service, make_web):
        """Municipalities outside the dataset get the single-authority record."""
        async with make_service(make_web()) as service:
            resolved = ResolvedAuthority(
                gemeinde_name="Allschwil",
                ortsteil="Allschwil",
                bfs_nummer=2762,
                kanton="BL",
                website_url="https://www.allschwil.ch",
                source=ResolutionSource.OPENDATA,
            )
            result = await service.get_school_registration_info(resolved)

        assert result.school_authority.authority_name == "Schulverwaltung Allschwil"
        assert result.school_authority.website_url == "https://www.allschwil.ch"

    async def test_seeded_school_structure(self, authorities):
        by_name = {a.gemeinde_name: a for a in authorities}
        zurich = by_name["Zürich"]

        assert zurich.school_authority_type == SchoolAuthorityType.MULTI_DISTRICT
        district_codes = [plz for d in zurich.school_districts for plz in d.postal_codes]
        assert sorted(district_codes) == sorted(zurich.plz)
        assert by_name["Lugano"].school_administration_url == "https://scuole.lugano.ch/Contatti/"


class TestWiring:

    async def test_memory_backend(self, settings, fake_web):
        async with fake_web.client() as client:
            service = build_authority_info_service(client, settings)
            resolved = await service.resolve_location("5314")

        assert isinstance(service.cache, InMemoryInfoCache)
        assert service.extractor.generator is None
        assert resolved.gemeinde_name == "Böttstein"

    async def test_store_checks(self, make_service, make_web, settings, clock):
        class BrokenCache(InMemoryInfoCache):
            async def get(self, key):
                raise DatasetError("connection refused")

        async with make_service(make_web()) as service:
            healthy = await service.check_stores()
        async with make_service(make_web(), cache=BrokenCache(settings, clock)) as service:
            broken = await service.check_stores()

        assert healthy == {"dataset": "ok", "cache": "ok"}
        assert broken == {"dataset": "ok", "cache": "connection refused"}
