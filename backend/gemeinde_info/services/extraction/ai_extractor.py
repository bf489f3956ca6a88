"""
AI Extractor Service

Turns municipality page text into an ExtractedInfo record (or, for school
authorities, a SchoolRegistrationInfo) via a generative model. The adapter
never raises: `run()` reports success or failure as an ExtractionOutcome and
`extract()` and `extract_school()` map every failure to the default record.

Registration URL priority:
1. Discovered candidate with score >= high-confidence cutoff
2. URL proposed by the model
3. Best discovered candidate (any score)
4. Deterministic fallback from the URL table / www.<slug>.ch pattern
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.exceptions import ExtractionParseError
from gemeinde_info.core.logging import record_extraction
from gemeinde_info.core.models import ExtractedInfo, InfoCategory, SchoolRegistrationInfo, utcnow
from gemeinde_info.services.ai import TextGenerationInterface
from gemeinde_info.services.discovery.base import CandidateURL
from gemeinde_info.services.extraction.defaults import (
    DEFAULT_CONFIDENCE,
    default_age_requirements,
    default_hours,
    default_info,
    default_school_info,
)
from gemeinde_info.services.extraction.parser import parse_model_response, to_fields, to_school_fields
from gemeinde_info.services.extraction.prompts import build_prompt
from gemeinde_info.services.extraction.text import relevant_excerpt
from gemeinde_info.services.municipality_urls import fallback_registration_url

logger = structlog.get_logger()

# School pages shorter than this are navigation shells
MIN_SCHOOL_TEXT_CHARS = 100


@dataclass
class ExtractionOutcome:
    """Result of one model round-trip: decoded fields or a failure reason."""
    fields: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, fields: dict[str, Any]) -> "ExtractionOutcome":
        return cls(fields=fields)

    @classmethod
    def failure(cls, reason: str) -> "ExtractionOutcome":
        return cls(reason=reason)


class AIExtractor:
    """
    Extracts office hours, contact and registration details.

    Usage:
        extractor = AIExtractor(create_text_generator())
        info = await extractor.extract(page_text, "Böttstein", best_candidate)
    """

    def __init__(
        self,
        generator: TextGenerationInterface | None,
        settings: Settings | None = None,
    ):
        self.generator = generator
        self.settings = settings or default_settings
        self.log = logger.bind(component="AIExtractor")

    async def run(
        self,
        page_text: str,
        authority_name: str,
        website: str | None = None,
        discovered_url: str | None = None,
        category: InfoCategory = InfoCategory.OPERATIONAL,
    ) -> ExtractionOutcome:
        """Prompt the model and decode its answer. Never raises."""
        if self.generator is None:
            return ExtractionOutcome.failure("model not configured")

        excerpt = relevant_excerpt(page_text, self.settings.ai_max_content_chars)
        if not excerpt:
            return ExtractionOutcome.failure("no page content")

        prompt = build_prompt(
            category, authority_name, excerpt, website, discovered_url, utcnow().isoformat()
        )

        try:
            raw = await self.generator.generate(prompt)
        except Exception as e:
            # Provider SDKs raise their own hierarchies; any of them means "no answer"
            self.log.warning("Model call failed", authority=authority_name, error=str(e))
            return ExtractionOutcome.failure(f"model error: {type(e).__name__}")

        try:
            decode = to_school_fields if category == InfoCategory.SCHOOL_REGISTRATION else to_fields
            fields = decode(parse_model_response(raw))
        except ExtractionParseError as e:
            self.log.warning("Unparseable model response", authority=authority_name, error=e.message)
            return ExtractionOutcome.failure(f"parse error: {e.message}")

        return ExtractionOutcome.success(fields)

    async def extract(
        self,
        page_text: str,
        authority_name: str,
        best_candidate: CandidateURL | None = None,
        category: InfoCategory = InfoCategory.OPERATIONAL,
        website: str | None = None,
    ) -> ExtractedInfo:
        """
        Best-effort structured info for an authority.

        Args:
            page_text: Visible text of the fetched pages (may be empty)
            authority_name: Canonical municipality name
            best_candidate: Top discovered page, if any
            category: Which info category to extract
            website: Municipality website, echoed in the record

        Returns:
            A fully populated ExtractedInfo; the default record on any failure
        """
        try:
            outcome = await self.run(
                page_text,
                authority_name,
                website=website,
                discovered_url=best_candidate.url if best_candidate else None,
                category=category,
            )
            info = self._to_info(outcome, authority_name, best_candidate, category, website)
        except Exception as e:
            self.log.error("Extraction failed unexpectedly", authority=authority_name, error=str(e))
            info = default_info(
                category, website, self._fallback_url(authority_name, best_candidate, website)
            )
            outcome = ExtractionOutcome.failure("internal error")

        record_extraction(outcome.ok, outcome.reason, info.confidence)
        return info

    async def extract_school(
        self,
        page_text: str,
        authority_name: str,
        website: str | None = None,
        registration_url: str | None = None,
    ) -> SchoolRegistrationInfo:
        """
        School enrolment details from the school authority's page.

        Never raises; a short page, no model or a bad answer yield
        default_school_info(). A known registration_url wins over the
        model's suggestion.
        """
        try:
            if len((page_text or "").strip()) < MIN_SCHOOL_TEXT_CHARS:
                outcome = ExtractionOutcome.failure("no page content")
            else:
                outcome = await self.run(
                    page_text,
                    authority_name,
                    website=website,
                    discovered_url=registration_url,
                    category=InfoCategory.SCHOOL_REGISTRATION,
                )
            info = self._to_school_info(outcome, authority_name, registration_url)
        except Exception as e:
            self.log.error("School extraction failed unexpectedly", authority=authority_name, error=str(e))
            info = default_school_info(registration_url)
            outcome = ExtractionOutcome.failure("internal error")

        record_extraction(outcome.ok, outcome.reason, info.confidence)
        return info

    def _to_school_info(
        self,
        outcome: ExtractionOutcome,
        authority_name: str,
        registration_url: str | None,
    ) -> SchoolRegistrationInfo:
        if not outcome.ok:
            self.log.info("Using default school record", authority=authority_name, reason=outcome.reason)
            return default_school_info(registration_url)

        fields = dict(outcome.fields)
        if registration_url:
            fields["registration_form_url"] = registration_url
        fields.setdefault("age_requirements", default_age_requirements())

        info = SchoolRegistrationInfo(**fields, last_checked=utcnow())
        self.log.info("Extracted school info", authority=authority_name, confidence=info.confidence)
        return info


    def _fallback_url(
        self,
        authority_name: str,
        best_candidate: CandidateURL | None,
        website: str | None,
    ) -> str:
        if best_candidate:
            return best_candidate.url
        return fallback_registration_url(authority_name, website)

    def _to_info(
        self,
        outcome: ExtractionOutcome,
        authority_name: str,
        best_candidate: CandidateURL | None,
        category: InfoCategory,
        website: str | None,
    ) -> ExtractedInfo:
        if not outcome.ok:
            self.log.info("Using default record", authority=authority_name, reason=outcome.reason)
            return default_info(
                category, website, self._fallback_url(authority_name, best_candidate, website)
            )

        fields = dict(outcome.fields)
        high_confidence = (
            best_candidate is not None
            and best_candidate.score >= self.settings.candidate_high_confidence
        )
        if high_confidence or not fields.get("registration_url"):
            fields["registration_url"] = self._fallback_url(authority_name, best_candidate, website)

        if not fields.get("hours"):
            fields["hours"] = default_hours()
            fields["confidence"] = min(fields["confidence"], DEFAULT_CONFIDENCE)

        fields.setdefault("website", website)
        info = ExtractedInfo(**fields, last_checked=utcnow())

        self.log.info(
            "Extracted authority info",
            authority=authority_name,
            confidence=info.confidence,
            registration_url=info.registration_url,
        )
        return info
