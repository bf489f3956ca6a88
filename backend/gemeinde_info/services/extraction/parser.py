"""
Model response parsing.

The model is asked for one JSON object but may wrap it in markdown fences,
nest the weekdays under "hours" (or the older "einwohnerdienste" wrapper)
or return values of the wrong type. Everything is coerced into the
ExtractedInfo (or SchoolRegistrationInfo) shape; anything that is not a JSON object raises
ExtractionParseError.
"""

import json
import re
from typing import Any

from gemeinde_info.core.exceptions import ExtractionParseError
from gemeinde_info.core.models import WEEKDAYS, AgeRequirements, DayHours, SchoolContact

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_NULL_STRINGS = {"", "null", "none", "n/a", "unknown"}


def strip_fences(text: str) -> str:
    return _FENCE.sub("", text or "").strip()


def parse_model_response(text: str) -> dict[str, Any]:
    """
    Decode the model output into a dict.

    Raises:
        ExtractionParseError: empty output, invalid JSON or a non-object
    """
    cleaned = strip_fences(text)
    if not cleaned:
        raise ExtractionParseError("Model returned an empty response")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        # Prose around the object: take the outermost braces
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ExtractionParseError("Model response is not JSON", {"response": cleaned[:200]})
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise ExtractionParseError(f"Model response is not JSON: {e}", {"response": cleaned[:200]}) from e

    if not isinstance(data, dict):
        raise ExtractionParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    value = str(value).strip()
    return None if value.lower() in _NULL_STRINGS else value


def _day(value: Any) -> DayHours | None:
    if not isinstance(value, dict):
        return None
    closed = value.get("closed") is True
    morning = None if closed else _text(value.get("morning"))
    afternoon = None if closed else _text(value.get("afternoon"))
    if not closed and not morning and not afternoon:
        return None
    return DayHours(morning=morning, afternoon=afternoon, closed=closed)


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    """Merge the legacy {"einwohnerdienste": {...}} wrapper into the top level."""
    office = data.get("einwohnerdienste")
    if isinstance(office, dict):
        return {**data, **office}
    return data


def extract_hours(data: dict[str, Any]) -> dict[str, DayHours]:
    """Weekday hours found in the response, top-level or under "hours"."""
    data = _flatten(data)
    sources = [data]
    if isinstance(data.get("hours"), dict):
        sources.insert(0, data["hours"])

    hours: dict[str, DayHours] = {}
    for day in WEEKDAYS:
        for source in sources:
            parsed = _day(source.get(day))
            if parsed is not None:
                hours[day] = parsed
                break
    return hours


def coerce_confidence(value: Any, default: float = 0.5) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(confidence, 0.0), 1.0)


def to_fields(data: dict[str, Any]) -> dict[str, Any]:
    """
    Map a decoded response to ExtractedInfo keyword arguments.

    Missing values are left out so the caller's defaults apply.
    """
    data = _flatten(data)
    fields: dict[str, Any] = {
        "hours": extract_hours(data),
        "confidence": coerce_confidence(data.get("confidence")),
    }

    for key in ("phone", "email", "address", "website", "registration_url",
                "registration_deadline", "special_notes"):
        value = _text(data.get(key))
        if value:
            fields[key] = value

    fields.update(_documents_and_fees(data))

    school = _school_contact(data.get("schulverwaltung"))
    if school is not None:
        fields["school_administration"] = school

    return fields


def _documents_and_fees(data: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}

    documents = data.get("required_documents")
    if isinstance(documents, list):
        fields["required_documents"] = [d for d in (_text(x) for x in documents) if d]

    fees = data.get("fees")
    if isinstance(fees, dict):
        fields["fees"] = {k: v for k, v in fees.items() if v is not None}

    return fields


def _school_contact(value: Any) -> SchoolContact | None:
    """The "schulverwaltung" block, None when absent or empty."""
    if not isinstance(value, dict):
        return None
    contact = SchoolContact(**{key: _text(value.get(key)) for key in ("hours", "phone", "email", "website")})
    if not any(contact.model_dump().values()):
        return None
    return contact


def to_school_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Map a decoded response to SchoolRegistrationInfo keyword arguments."""
    fields: dict[str, Any] = {"confidence": coerce_confidence(data.get("confidence"))}

    for key in ("registration_process", "registration_deadline", "special_notes",
                "registration_form_url", "registration_form_pdf_url"):
        value = _text(data.get(key))
        if value:
            fields[key] = value

    fields.update(_documents_and_fees(data))

    ages = data.get("age_requirements")
    if isinstance(ages, dict):
        requirements = AgeRequirements(
            kindergarten=_text(ages.get("kindergarten")),
            primary=_text(ages.get("primary")),
        )
        if requirements.kindergarten or requirements.primary:
            fields["age_requirements"] = requirements

    return fields
