"""
AI Extraction Prompts

Prompt templates per info category. Each asks for a single JSON object
and nothing else; the parser tolerates markdown fences anyway.
"""

from gemeinde_info.core.models import InfoCategory

_HOURS_SCHEMA = """  "monday": {"morning": "08:00-12:00", "afternoon": "14:00-17:00"} or {"closed": true},
  "tuesday": {...},
  "wednesday": {...},
  "thursday": {...},
  "friday": {...},
  "saturday": {"closed": true},
  "sunday": {"closed": true},"""


def build_operational_prompt(
    authority_name: str,
    content: str,
    website: str | None,
    discovered_url: str | None,
    now_iso: str,
) -> str:
    """Opening hours and contact details of the residents' office."""
    discovered = f"\nDiscovered registration URL: {discovered_url}\n" if discovered_url else ""
    return f"""Extract opening hours, contact info and the registration page URL for the residents' office (Einwohnerdienste) of the Swiss municipality "{authority_name}".

Website Content:
{content}
{discovered}
Return ONLY valid JSON (no markdown) with this structure:
{{
{_HOURS_SCHEMA}
  "phone": "phone number or null",
  "email": "email or null",
  "website": "{website or 'url or null'}",
  "registration_url": "full URL to the registration page if found, or null",
  "schulverwaltung": {{
    "hours": "opening hours of the school administration as text, or null",
    "phone": "phone number or null",
    "email": "email or null",
    "website": "URL of the school administration page or null"
  }} or null,
  "confidence": 0.0 to 1.0,
  "last_checked": "{now_iso}"
}}

IMPORTANT:
- Use 24-hour format (HH:MM)
- Mark closed days as {{"closed": true}}
- Look for registration links such as "Anmeldung", "Wohnsitzanmeldung", "inscription", "iscrizione"
- Fill "schulverwaltung" only if the page names a school administration (Schulverwaltung, Schulsekretariat)
- If information is unclear, set confidence lower (0.5-0.7)
- Extract ONLY what you find, don't invent data
- Return ONLY the JSON object, no other text
"""


def build_registration_prompt(
    authority_name: str,
    content: str,
    website: str | None,
    discovered_url: str | None,
    now_iso: str,
) -> str:
    """Registration process: documents, fees, deadlines, plus hours/contact."""
    source = discovered_url or website or "unknown"
    return f"""You are extracting residence registration requirements for people moving to a Swiss municipality.

Municipality: {authority_name}
Source URL: {source}

Website Content:
{content}

CRITICAL INSTRUCTIONS:
1. Extract ONLY information explicitly stated
2. If information is not found, use null (or an empty list/object)
3. Return valid JSON only

OUTPUT FORMAT (strict JSON):
{{
{_HOURS_SCHEMA}
  "phone": "phone number or null",
  "email": "email or null",
  "address": "office address or null",
  "website": "{website or 'url or null'}",
  "registration_url": "full URL to the registration page or form, or null",
  "required_documents": ["Passport or ID", "Rental contract", ...],
  "fees": {{"registration_fee": 30}},
  "registration_deadline": "e.g. 'Within 14 days of arrival'" or null,
  "special_notes": "Important notices (appointments, procedures for foreign nationals)" or null,
  "confidence": 0.0 to 1.0,
  "last_checked": "{now_iso}"
}}

Return ONLY the JSON object, no explanation.
"""


def build_school_prompt(
    authority_name: str,
    content: str,
    website: str | None,
    discovered_url: str | None,
    now_iso: str,
) -> str:
    """Enrolment in public Kindergarten and Primarschule."""
    source = discovered_url or website or "unknown"
    return f"""You are extracting school registration information for parents moving to a Swiss municipality.

School authority: {authority_name}
Source URL: {source}

Website Content:
{content}

CRITICAL INSTRUCTIONS:
1. Focus on public Kindergarten and Primarschule enrolment
2. Extract ONLY information explicitly stated
3. If information is not found, use null (or an empty list/object)
4. Return valid JSON only

OUTPUT FORMAT (strict JSON):
{{
  "registration_process": "Step-by-step description of how to register a child" or null,
  "required_documents": ["Birth certificate", "Proof of residence", ...],
  "registration_deadline": "e.g. 'By end of January for the following school year'" or null,
  "age_requirements": {{
    "kindergarten": "e.g. 'Age 4 by July 31'" or null,
    "primary": "e.g. 'Age 6 by July 31'" or null
  }},
  "fees": {{"registration_fee": null, "materials_fee": null}},
  "special_notes": "Language support, special needs, mid-year moves" or null,
  "registration_form_url": "full URL to the online registration form, or null",
  "registration_form_pdf_url": "full URL to a PDF form, or null",
  "confidence": 0.0 to 1.0,
  "last_checked": "{now_iso}"
}}

Return ONLY the JSON object, no explanation.
"""


PROMPT_BUILDERS = {
    InfoCategory.OPERATIONAL: build_operational_prompt,
    InfoCategory.REGISTRATION_PROCESS: build_registration_prompt,
    InfoCategory.SCHOOL_REGISTRATION: build_school_prompt,
}


def build_prompt(
    category: InfoCategory,
    authority_name: str,
    content: str,
    website: str | None,
    discovered_url: str | None,
    now_iso: str,
) -> str:
    return PROMPT_BUILDERS[category](authority_name, content, website, discovered_url, now_iso)
