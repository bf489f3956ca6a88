"""
School Authority Resolution

Finds the office that enrols a child living at an address:

- single (or unknown) structure: the municipality's Schulverwaltung
- multi_district: the Schulkreis whose postal codes contain the PLZ,
  otherwise the one the model picks from postal codes and boundary streets,
  otherwise the municipal Schulamt

Also maps a child's age to the school level a parent has to register for.
"""

import structlog

from gemeinde_info.core.exceptions import ExtractionParseError
from gemeinde_info.core.logging import enrich_event
from gemeinde_info.core.models import (
    CanonicalAuthority,
    DistrictSummary,
    SchoolAuthority,
    SchoolAuthorityType,
    SchoolDistrict,
    SchoolGuidance,
    SchoolRegistrationInfo,
)
from gemeinde_info.services.ai import TextGenerationInterface
from gemeinde_info.services.extraction.parser import parse_model_response

logger = structlog.get_logger()

UNCERTAIN = "UNCERTAIN"


def build_district_prompt(address: str, plz: str, districts: list[SchoolDistrict]) -> str:
    listing = "\n\n".join(
        f"{d.district_name}:\n"
        f"- Postal codes: {', '.join(d.postal_codes) or 'Unknown'}\n"
        f"- Boundary streets: {', '.join(d.boundary_streets) or 'Not defined'}"
        for d in districts
    )
    return f"""You are a Swiss school district expert.

Task: Determine which school district this address belongs to.

Address:
{address or 'unknown'}
PLZ: {plz or 'unknown'}

Available School Districts:
{listing}

Instructions:
1. Match the postal code first (most reliable)
2. If no PLZ match, analyze street names and boundaries
3. Answer with a district name from the list above
4. If uncertain, answer "{UNCERTAIN}"

Return ONLY valid JSON: {{"district": "district name or {UNCERTAIN}"}}
"""


def match_district_name(answer: str, districts: list[SchoolDistrict]) -> SchoolDistrict | None:
    """District named by a model answer: full name or short name, case-insensitive."""
    needle = answer.strip().lower()
    if not needle or needle == UNCERTAIN.lower():
        return None
    for district in districts:
        short = (district.district_name_short or "").lower()
        if needle in district.district_name.lower() or (short and short in needle):
            return district
    return None


class SchoolAuthorityResolver:
    """
    Resolves an address within a municipality to its school authority.

    Usage:
        resolver = SchoolAuthorityResolver(create_text_generator())
        authority = await resolver.resolve(canonical, plz="8003", address="Birmensdorferstrasse 1")
    """

    def __init__(self, generator: TextGenerationInterface | None = None):
        self.generator = generator
        self.log = logger.bind(component="SchoolAuthorityResolver")

    async def resolve(
        self,
        authority: CanonicalAuthority,
        plz: str | None = None,
        address: str | None = None,
    ) -> SchoolAuthority:
        name = authority.gemeinde_name
        website = authority.school_administration_url or authority.official_website

        if authority.school_authority_type != SchoolAuthorityType.MULTI_DISTRICT:
            enrich_event(**{"school.authority_type": "gemeinde"})
            return SchoolAuthority(
                authority_name=f"Schulverwaltung {name}",
                contact_office=f"Gemeindeverwaltung {name}",
                website_url=website,
            )

        district = await self.find_district(authority.school_districts, plz or "", address or "")
        if district is None:
            enrich_event(**{"school.authority_type": "gemeinde", "school.district": None})
            return SchoolAuthority(
                authority_name=f"Schulamt {name}",
                contact_office=f"Schulamt {name}",
                website_url=website,
            )

        enrich_event(**{"school.authority_type": "schulkreis", "school.district": district.district_name})
        return SchoolAuthority(
            authority_name=district.district_name,
            authority_type="schulkreis",
            contact_office=district.contact_office or district.district_name,
            address=district.office_address,
            phone=district.phone,
            email=district.email,
            website_url=district.website_url or website,
            registration_url=district.registration_url,
            school_district=DistrictSummary(
                name=district.district_name,
                boundaries=", ".join(district.postal_codes) or "Contact office for confirmation",
            ),
        )

    async def find_district(
        self,
        districts: list[SchoolDistrict],
        plz: str,
        address: str,
    ) -> SchoolDistrict | None:
        """Postal-code match first, then the model. None if neither is sure."""
        plz = plz.strip()
        if plz:
            for district in districts:
                if plz in district.postal_codes:
                    return district

        if not districts or not (plz or address.strip()):
            return None
        return await self._match_with_model(districts, plz, address)

    async def _match_with_model(
        self,
        districts: list[SchoolDistrict],
        plz: str,
        address: str,
    ) -> SchoolDistrict | None:
        if self.generator is None:
            self.log.debug("No model configured, skipping district match")
            return None

        try:
            raw = await self.generator.generate(build_district_prompt(address, plz, districts))
            answer = parse_model_response(raw).get("district")
        except ExtractionParseError as e:
            self.log.warning("Unparseable district answer", error=e.message)
            return None
        except Exception as e:
            # Provider SDKs raise their own hierarchies; any of them means "no answer"
            self.log.warning("District match failed", error=str(e))
            return None

        if not isinstance(answer, str):
            return None
        district = match_district_name(answer, districts)
        self.log.info("Model district match", answer=answer, district=district.district_name if district else None)
        return district


def determine_guidance(child_age: int, info: SchoolRegistrationInfo) -> SchoolGuidance:
    """School level a child of child_age has to be registered for."""
    if child_age < 4:
        return SchoolGuidance(
            level="too_young",
            message="Your child is not yet school age. Kindergarten typically starts at age 4-5.",
            action="Explore daycare and preschool options in the meantime.",
        )
    if child_age < 6:
        return SchoolGuidance(
            level="kindergarten",
            message="Your child should be registered for Kindergarten.",
            action="Contact the school authority as soon as possible after arrival.",
            age_requirement=info.age_requirements.kindergarten or "Age 4-6",
        )
    if child_age < 12:
        return SchoolGuidance(
            level="primary",
            message="Your child should be registered for Primarschule (Primary School).",
            action="Contact the school authority immediately. Registration is mandatory.",
            age_requirement=info.age_requirements.primary or "Age 6-12",
        )
    return SchoolGuidance(
        level="secondary",
        message="Your child should be registered for Sekundarstufe (Secondary School).",
        action="Contact the municipal or cantonal school authority for secondary school registration.",
        note="Secondary school registration may involve the canton, not just the municipality.",
    )
