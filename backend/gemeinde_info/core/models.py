"""
Core models and types for Gemeinde Info.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


# =============================================================================
# Enums
# =============================================================================


class InfoCategory(str, Enum):
    """Kinds of authority info, each cached with its own TTL."""
    OPERATIONAL = "operational"                    # Opening hours, contact
    REGISTRATION_PROCESS = "registration_process"  # Documents, fees, deadlines
    SCHOOL_REGISTRATION = "school_registration"    # Kindergarten and Primarschule enrolment


class ResolutionSource(str, Enum):
    """Which resolver tier produced the authority."""
    PLZ = "plz"
    NAME = "name"
    NORMALIZED = "normalized"
    ORTSTEIL = "ortsteil"
    FUZZY = "fuzzy"
    OPENDATA = "opendata"


class SchoolAuthorityType(str, Enum):
    """How a municipality organises its public schools."""
    SINGLE = "single"                  # One Schulverwaltung
    MULTI_DISTRICT = "multi_district"  # Schulkreise, e.g. the city of Zürich
    REGIONAL = "regional"              # Shared with neighbouring municipalities


def utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Base Models
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Authorities
# =============================================================================


class SchoolDistrict(BaseSchema):
    """A Schulkreis of a multi-district municipality."""
    district_name: str                      # "Schulkreis Uto"
    district_name_short: str | None = None  # "Uto"
    contact_office: str | None = None       # "Kreisschulbehörde Uto"
    office_address: str | None = None
    phone: str | None = None
    email: str | None = None
    website_url: str | None = None
    registration_url: str | None = None
    boundary_streets: list[str] = Field(default_factory=list)
    postal_codes: list[str] = Field(default_factory=list)


class CanonicalAuthority(BaseSchema):
    """A municipality as stored in the canonical dataset."""
    bfs_nummer: int
    gemeinde_name: str
    kanton: str
    plz: list[str] = Field(default_factory=list)
    ortsteile: list[str] = Field(default_factory=list)
    official_website: str | None = None
    registration_pages: list[str] = Field(default_factory=list)
    school_authority_type: SchoolAuthorityType | None = None
    school_administration_url: str | None = None
    school_districts: list[SchoolDistrict] = Field(default_factory=list)


class ResolvedAuthority(BaseSchema):
    """Result of resolving a user query to a canonical authority."""
    gemeinde_name: str = Field(min_length=1)
    ortsteil: str
    bfs_nummer: int
    kanton: str
    website_url: str | None = None
    registration_pages: list[str] = Field(default_factory=list)
    source: ResolutionSource = ResolutionSource.NAME

    @classmethod
    def from_authority(
        cls,
        authority: CanonicalAuthority,
        ortsteil: str,
        source: ResolutionSource,
    ) -> "ResolvedAuthority":
        return cls(
            gemeinde_name=authority.gemeinde_name,
            ortsteil=ortsteil,
            bfs_nummer=authority.bfs_nummer,
            kanton=authority.kanton,
            website_url=authority.official_website,
            registration_pages=list(authority.registration_pages),
            source=source,
        )


class DistrictSummary(BaseSchema):
    name: str
    boundaries: str  # postal codes, or a hint to ask the office


class SchoolAuthority(BaseSchema):
    """The office responsible for enrolling a child at a given address."""
    authority_name: str
    authority_type: Literal["gemeinde", "schulkreis"] = "gemeinde"
    contact_office: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website_url: str | None = None
    registration_url: str | None = None
    school_district: DistrictSummary | None = None


# =============================================================================
# Extracted Info
# =============================================================================


class DayHours(BaseSchema):
    """Opening hours for one weekday."""
    morning: str | None = None
    afternoon: str | None = None
    closed: bool = False


class SchoolContact(BaseSchema):
    """Schulverwaltung contact block found on an operational page."""
    hours: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class ExtractedInfo(BaseSchema):
    """
    Structured info about an authority.

    Always fully populated: every weekday is present and list/mapping fields
    are never null, whether the data came from the model or the defaults.
    """
    kind: Literal["authority"] = "authority"
    hours: dict[str, DayHours] = Field(default_factory=lambda: {d: DayHours() for d in WEEKDAYS})
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    website: str | None = None
    registration_url: str | None = None
    required_documents: list[str] = Field(default_factory=list)
    fees: dict[str, Any] = Field(default_factory=dict)
    registration_deadline: str | None = None
    special_notes: str | None = None
    school_administration: SchoolContact | None = None
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    last_checked: datetime = Field(default_factory=utcnow)
    is_fallback: bool = False

    @field_validator("hours")
    @classmethod
    def fill_missing_days(cls, v: dict[str, DayHours]) -> dict[str, DayHours]:
        return {day: v.get(day) or DayHours() for day in WEEKDAYS}


class AgeRequirements(BaseSchema):
    kindergarten: str | None = None
    primary: str | None = None


class SchoolRegistrationInfo(BaseSchema):
    """How to enrol a child in public Kindergarten or Primarschule."""
    kind: Literal["school"] = "school"
    registration_process: str | None = None
    required_documents: list[str] = Field(default_factory=list)
    registration_deadline: str | None = None
    age_requirements: AgeRequirements = Field(default_factory=AgeRequirements)
    fees: dict[str, Any] = Field(default_factory=dict)
    special_notes: str | None = None
    registration_form_url: str | None = None
    registration_form_pdf_url: str | None = None
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    last_checked: datetime = Field(default_factory=utcnow)
    is_fallback: bool = False


class SchoolGuidance(BaseSchema):
    """What a parent should do next, given the child's age."""
    level: Literal["too_young", "kindergarten", "primary", "secondary"]
    message: str
    action: str
    age_requirement: str | None = None
    note: str | None = None


CachePayload = Annotated[ExtractedInfo | SchoolRegistrationInfo, Field(discriminator="kind")]


# =============================================================================
# Cache
# =============================================================================


class CacheKey(BaseSchema):
    bfs_nummer: int
    category: InfoCategory = InfoCategory.OPERATIONAL
    scope: str = ""  # Schulkreis for school info, empty when municipality-wide

    model_config = ConfigDict(frozen=True)


class CacheEntry(BaseSchema):
    """One cached payload per (authority, category, scope)."""
    key: CacheKey
    payload: CachePayload
    cached_at: datetime
    ttl_seconds: int

    def is_stale(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.cached_at + timedelta(seconds=self.ttl_seconds) < now


class AuthorityInfoResult(BaseSchema):
    """Info payload tagged with cache provenance."""
    authority: ResolvedAuthority
    category: InfoCategory
    info: ExtractedInfo
    cached: bool
    cached_at: datetime


class SchoolRegistrationResult(BaseSchema):
    """School enrolment info for one address, tagged with cache provenance."""
    authority: ResolvedAuthority
    school_authority: SchoolAuthority
    info: SchoolRegistrationInfo
    guidance: SchoolGuidance
    cached: bool
    cached_at: datetime
