"""
Core package initialization.
"""

from gemeinde_info.core.config import Settings, get_settings, settings
from gemeinde_info.core.exceptions import (
    CacheWriteError,
    DatasetError,
    ExtractionParseError,
    GemeindeInfoException,
    NotFoundError,
    TransientFetchError,
)
from gemeinde_info.core.models import (
    WEEKDAYS,
    AuthorityInfoResult,
    CacheEntry,
    CacheKey,
    CanonicalAuthority,
    DayHours,
    ExtractedInfo,
    InfoCategory,
    ResolutionSource,
    ResolvedAuthority,
    SchoolAuthority,
    SchoolAuthorityType,
    SchoolDistrict,
    SchoolGuidance,
    SchoolRegistrationInfo,
    SchoolRegistrationResult,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",
    # Exceptions
    "GemeindeInfoException",
    "NotFoundError",
    "TransientFetchError",
    "ExtractionParseError",
    "CacheWriteError",
    "DatasetError",
    # Models
    "WEEKDAYS",
    "InfoCategory",
    "ResolutionSource",
    "CanonicalAuthority",
    "ResolvedAuthority",
    "DayHours",
    "ExtractedInfo",
    "CacheKey",
    "CacheEntry",
    "AuthorityInfoResult",
    "SchoolAuthorityType",
    "SchoolDistrict",
    "SchoolAuthority",
    "SchoolRegistrationInfo",
    "SchoolGuidance",
    "SchoolRegistrationResult",
]
