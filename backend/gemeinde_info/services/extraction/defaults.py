"""
Default records used when extraction fails.

Generic Swiss office hours (Mon-Thu with a lunch break, Friday mornings)
hold for most of the 2000+ municipalities and beat an empty answer.
"""

from gemeinde_info.core.models import (
    AgeRequirements,
    DayHours,
    ExtractedInfo,
    InfoCategory,
    SchoolRegistrationInfo,
    utcnow,
)

DEFAULT_CONFIDENCE = 0.5

_FULL_DAY = {"morning": "08:00-12:00", "afternoon": "14:00-17:00"}


def default_hours() -> dict[str, DayHours]:
    return {
        "monday": DayHours(**_FULL_DAY),
        "tuesday": DayHours(**_FULL_DAY),
        "wednesday": DayHours(**_FULL_DAY),
        "thursday": DayHours(**_FULL_DAY),
        "friday": DayHours(morning="08:00-12:00"),
        "saturday": DayHours(closed=True),
        "sunday": DayHours(closed=True),
    }


DEFAULT_REQUIRED_DOCUMENTS = [
    "Passport or ID card",
    "Rental contract or proof of residence",
    "Residence permit (foreign nationals)",
    "Certificate of residence from the previous municipality (Heimatschein)",
    "Health insurance certificate",
]


def default_info(
    category: InfoCategory,
    website: str | None,
    registration_url: str | None,
) -> ExtractedInfo:
    """Fully populated fallback record with confidence 0.5."""
    info = ExtractedInfo(
        hours=default_hours(),
        website=website,
        registration_url=registration_url,
        confidence=DEFAULT_CONFIDENCE,
        last_checked=utcnow(),
        is_fallback=True,
    )
    if category == InfoCategory.REGISTRATION_PROCESS:
        info.required_documents = list(DEFAULT_REQUIRED_DOCUMENTS)
        info.registration_deadline = "Within 14 days of moving in"
        info.special_notes = "Please verify this information on the official website"
    return info


DEFAULT_SCHOOL_DOCUMENTS = [
    "Child's passport or ID",
    "Birth certificate",
    "Proof of residence (rental contract)",
    "Immunization/vaccination records",
]


def default_age_requirements() -> AgeRequirements:
    return AgeRequirements(kindergarten="Age 4-6 (varies by canton)", primary="Age 6-12")


def default_school_info(registration_form_url: str | None = None) -> SchoolRegistrationInfo:
    """Generic enrolment record for when the school page yields nothing."""
    return SchoolRegistrationInfo(
        required_documents=list(DEFAULT_SCHOOL_DOCUMENTS),
        registration_deadline="Contact authority for details",
        age_requirements=default_age_requirements(),
        special_notes="Please verify information on official website",
        registration_form_url=registration_form_url,
        confidence=DEFAULT_CONFIDENCE,
        last_checked=utcnow(),
        is_fallback=True,
    )
