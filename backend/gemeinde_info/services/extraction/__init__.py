"""
Extraction subpackage: page text -> structured authority info.

Modules:
- text: HTML to text, relevant excerpt selection
- prompts: per-category prompt templates
- parser: defensive decoding of model output
- defaults: fallback records
- ai_extractor: the never-failing extraction adapter
- formatting: office hours for display
"""

from gemeinde_info.services.extraction.ai_extractor import AIExtractor, ExtractionOutcome
from gemeinde_info.services.extraction.defaults import default_hours, default_info, default_school_info
from gemeinde_info.services.extraction.formatting import format_office_hours
from gemeinde_info.services.extraction.parser import (
    coerce_confidence,
    extract_hours,
    parse_model_response,
    to_fields,
    to_school_fields,
)
from gemeinde_info.services.extraction.prompts import build_prompt
from gemeinde_info.services.extraction.text import html_to_text, relevant_excerpt

__all__ = [
    "AIExtractor",
    "ExtractionOutcome",
    "default_hours",
    "default_info",
    "default_school_info",
    "format_office_hours",
    "parse_model_response",
    "extract_hours",
    "coerce_confidence",
    "to_fields",
    "to_school_fields",
    "build_prompt",
    "html_to_text",
    "relevant_excerpt",
]
