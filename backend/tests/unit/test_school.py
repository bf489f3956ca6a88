"""
Unit tests for school authority resolution, school page extraction and
age guidance.

District matching by model runs against a scripted generator.
"""

import json

import pytest

from gemeinde_info.core.models import (
    AgeRequirements,
    CanonicalAuthority,
    SchoolAuthorityType,
    SchoolDistrict,
    SchoolRegistrationInfo,
)
from gemeinde_info.services.extraction import AIExtractor, default_school_info, to_school_fields
from gemeinde_info.services.school import (
    SchoolAuthorityResolver,
    build_district_prompt,
    determine_guidance,
    match_district_name,
)

UTO = SchoolDistrict(
    district_name="Schulkreis Uto",
    district_name_short="Uto",
    contact_office="Kreisschulbehörde Uto",
    office_address="Parkring 4, 8002 Zürich",
    phone="044 413 86 10",
    postal_codes=["8002", "8003", "8038"],
)
GLATTAL = SchoolDistrict(
    district_name="Schulkreis Glattal",
    district_name_short="Glattal",
    boundary_streets=["Schaffhauserstrasse", "Wehntalerstrasse"],
    postal_codes=[],
    website_url="https://glattal.example.ch",
)

CITY = CanonicalAuthority(
    bfs_nummer=261,
    gemeinde_name="Zürich",
    kanton="ZH",
    official_website="https://www.stadt-zuerich.ch",
    school_authority_type=SchoolAuthorityType.MULTI_DISTRICT,
    school_districts=[UTO, GLATTAL],
)
VILLAGE = CanonicalAuthority(
    bfs_nummer=4023,
    gemeinde_name="Böttstein",
    kanton="AG",
    official_website="https://www.boettstein.ch",
)

SCHOOL_PAGE = (
    "Anmeldung Kindergarten und Primarschule. Kinder, die bis zum 31. Juli das vierte Altersjahr "
    "vollenden, werden in den Kindergarten eingeschult. Bitte melden Sie Ihr Kind bei der "
    "Schulverwaltung an und bringen Sie Geburtsschein und Wohnsitzbestätigung mit."
)

SCHOOL_RESPONSE = {
    "registration_process": "Register online or at the Schulverwaltung counter",
    "required_documents": ["Geburtsschein", "Wohnsitzbestätigung", None],
    "registration_deadline": "null",
    "age_requirements": {"kindergarten": "Age 4 by July 31", "primary": None},
    "fees": {"registration_fee": None, "materials_fee": 50},
    "registration_form_url": "https://www.boettstein.ch/schule/anmeldung",
    "confidence": 0.8,
}


# =============================================================================
# School authority
# =============================================================================


@pytest.mark.asyncio
class TestSchoolAuthorityResolver:

    async def test_single_authority(self):
        authority = await SchoolAuthorityResolver().resolve(VILLAGE, plz="5314")

        assert authority.authority_name == "Schulverwaltung Böttstein"
        assert authority.authority_type == "gemeinde"
        assert authority.contact_office == "Gemeindeverwaltung Böttstein"
        assert authority.website_url == "https://www.boettstein.ch"
        assert authority.school_district is None

    async def test_school_administration_url_preferred(self):
        village = VILLAGE.model_copy(update={"school_administration_url": "https://www.schule-boettstein.ch"})
        authority = await SchoolAuthorityResolver().resolve(village)
        assert authority.website_url == "https://www.schule-boettstein.ch"

    async def test_district_by_postal_code(self, make_generator):
        generator = make_generator('{"district": "Glattal"}')
        authority = await SchoolAuthorityResolver(generator).resolve(CITY, plz="8003")

        assert authority.authority_type == "schulkreis"
        assert authority.authority_name == "Schulkreis Uto"
        assert authority.contact_office == "Kreisschulbehörde Uto"
        assert authority.phone == "044 413 86 10"
        assert authority.website_url == "https://www.stadt-zuerich.ch"
        assert authority.school_district.boundaries == "8002, 8003, 8038"
        assert generator.prompts == []

    async def test_district_by_model(self, make_generator):
        generator = make_generator('{"district": "Glattal"}')
        authority = await SchoolAuthorityResolver(generator).resolve(
            CITY, plz="8050", address="Schaffhauserstrasse 350"
        )

        assert authority.authority_name == "Schulkreis Glattal"
        assert authority.website_url == "https://glattal.example.ch"
        assert authority.school_district.boundaries == "Contact office for confirmation"
        assert "Schaffhauserstrasse 350" in generator.prompts[0]

    @pytest.mark.parametrize("response", [
        '{"district": "UNCERTAIN"}',
        '{"district": "Schulkreis Atlantis"}',
        '{"district": null}',
        "no idea",
        TimeoutError("model timed out"),
    ])
    async def test_no_district_falls_back_to_schulamt(self, make_generator, response):
        resolver = SchoolAuthorityResolver(make_generator(response))
        authority = await resolver.resolve(CITY, plz="8050", address="Irgendwo 1")

        assert authority.authority_name == "Schulamt Zürich"
        assert authority.contact_office == "Schulamt Zürich"
        assert authority.authority_type == "gemeinde"
        assert authority.website_url == "https://www.stadt-zuerich.ch"

    async def test_no_model_no_address(self, make_generator):
        generator = make_generator('{"district": "Uto"}')
        authority = await SchoolAuthorityResolver(generator).resolve(CITY)

        assert authority.authority_name == "Schulamt Zürich"
        assert generator.prompts == []


class TestDistrictMatching:

    @pytest.mark.parametrize("answer,expected", [
        ("Schulkreis Uto", "Schulkreis Uto"),
        ("uto", "Schulkreis Uto"),
        ("Kreisschulbehörde Glattal", "Schulkreis Glattal"),
        ("UNCERTAIN", None),
        ("", None),
        ("Schulkreis Seefeld", None),
    ])
    def test_match_district_name(self, answer, expected):
        district = match_district_name(answer, [UTO, GLATTAL])
        assert (district.district_name if district else None) == expected

    def test_district_without_short_name_never_matches_everything(self):
        unnamed = SchoolDistrict(district_name="Schulkreis Nord")
        assert match_district_name("Uto", [unnamed, UTO]) is UTO

    def test_prompt_lists_districts(self):
        prompt = build_district_prompt("Wehntalerstrasse 5", "8057", [UTO, GLATTAL])
        assert "Schulkreis Uto:\n- Postal codes: 8002, 8003, 8038" in prompt
        assert "- Boundary streets: Schaffhauserstrasse, Wehntalerstrasse" in prompt
        assert "- Postal codes: Unknown" in prompt
        assert "PLZ: 8057" in prompt


# =============================================================================
# Guidance
# =============================================================================


class TestGuidance:

    @pytest.mark.parametrize("age,level", [
        (0, "too_young"),
        (3, "too_young"),
        (4, "kindergarten"),
        (5, "kindergarten"),
        (6, "primary"),
        (11, "primary"),
        (12, "secondary"),
        (15, "secondary"),
    ])
    def test_level_by_age(self, age, level):
        assert determine_guidance(age, SchoolRegistrationInfo()).level == level

    def test_extracted_age_requirement_used(self):
        info = SchoolRegistrationInfo(age_requirements=AgeRequirements(kindergarten="Age 4 by July 31"))
        guidance = determine_guidance(4, info)
        assert guidance.age_requirement == "Age 4 by July 31"
        assert guidance.message == "Your child should be registered for Kindergarten."

    def test_generic_age_requirement(self):
        assert determine_guidance(7, SchoolRegistrationInfo()).age_requirement == "Age 6-12"

    def test_secondary_mentions_canton(self):
        guidance = determine_guidance(13, default_school_info())
        assert guidance.age_requirement is None
        assert "canton" in guidance.note


# =============================================================================
# School page extraction
# =============================================================================


class TestToSchoolFields:

    def test_fields(self):
        fields = to_school_fields(SCHOOL_RESPONSE)

        assert fields["registration_process"].startswith("Register online")
        assert fields["required_documents"] == ["Geburtsschein", "Wohnsitzbestätigung"]
        assert "registration_deadline" not in fields
        assert fields["age_requirements"] == AgeRequirements(kindergarten="Age 4 by July 31")
        assert fields["fees"] == {"materials_fee": 50}
        assert fields["confidence"] == 0.8

    def test_empty_age_requirements_dropped(self):
        assert "age_requirements" not in to_school_fields({"age_requirements": {"primary": "unknown"}})


@pytest.mark.asyncio
class TestExtractSchool:

    async def test_extracted(self, make_generator, settings):
        generator = make_generator(json.dumps(SCHOOL_RESPONSE))
        info = await AIExtractor(generator, settings).extract_school(
            SCHOOL_PAGE, "Schulverwaltung Böttstein", website="https://www.boettstein.ch"
        )

        assert not info.is_fallback
        assert info.registration_form_url == "https://www.boettstein.ch/schule/anmeldung"
        assert info.age_requirements.kindergarten == "Age 4 by July 31"
        assert info.age_requirements.primary is None
        assert "School authority: Schulverwaltung Böttstein" in generator.prompts[0]

    async def test_known_registration_url_wins(self, make_generator, settings):
        generator = make_generator(json.dumps(SCHOOL_RESPONSE))
        info = await AIExtractor(generator, settings).extract_school(
            SCHOOL_PAGE, "Schulkreis Uto", registration_url="https://www.stadt-zuerich.ch/uto/anmeldung"
        )
        assert info.registration_form_url == "https://www.stadt-zuerich.ch/uto/anmeldung"

    async def test_missing_age_requirements_filled(self, make_generator, settings):
        generator = make_generator('{"registration_process": "Online", "confidence": 0.7}')
        info = await AIExtractor(generator, settings).extract_school(SCHOOL_PAGE, "Schulverwaltung Böttstein")
        assert info.age_requirements.kindergarten == "Age 4-6 (varies by canton)"

    async def test_short_page_skips_model(self, make_generator, settings):
        generator = make_generator(json.dumps(SCHOOL_RESPONSE))
        info = await AIExtractor(generator, settings).extract_school("Menu Home Kontakt", "Schulverwaltung Böttstein")

        assert info.is_fallback
        assert generator.prompts == []

    @pytest.mark.parametrize("response", ["[1, 2]", "", RuntimeError("rate limited")])
    async def test_failures_yield_default_record(self, make_generator, settings, response):
        info = await AIExtractor(make_generator(response), settings).extract_school(
            SCHOOL_PAGE, "Schulverwaltung Böttstein", registration_url="https://www.boettstein.ch/schule"
        )

        assert info.is_fallback
        assert info.confidence == 0.5
        assert info.registration_form_url == "https://www.boettstein.ch/schule"
        assert "Birth certificate" in info.required_documents
        assert info.registration_deadline == "Contact authority for details"
        assert info.special_notes == "Please verify information on official website"

    async def test_model_not_configured(self, settings):
        info = await AIExtractor(None, settings).extract_school(SCHOOL_PAGE, "Schulverwaltung Böttstein")
        assert info == default_school_info().model_copy(update={"last_checked": info.last_checked})
