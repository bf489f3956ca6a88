"""
Exception hierarchy for Gemeinde Info.

Only NotFoundError is meant to reach callers. Every other error is caught
close to where it happens and degrades to a lower-confidence result.
"""

from typing import Any


class GemeindeInfoException(Exception):
    """Base exception carrying an HTTP-friendly code and details."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(GemeindeInfoException):
    """No resolution tier produced an authority for the query."""

    status_code = 404
    code = "not_found"

    DEFAULT_HINT = "Check the spelling or try the 4-digit postal code (PLZ)."

    def __init__(self, query: str, hint: str | None = None):
        self.query = query
        self.hint = hint or self.DEFAULT_HINT
        super().__init__(
            f'Municipality "{query}" not found',
            details={"query": query, "hint": self.hint},
        )


class TransientFetchError(GemeindeInfoException):
    """HTTP timeout, transport failure or non-success status."""

    status_code = 502
    code = "fetch_failed"

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Fetching {url} failed: {reason}", details={"url": url})


class ExtractionParseError(GemeindeInfoException):
    """Model output was not a JSON object."""

    code = "extraction_parse_error"


class CacheWriteError(GemeindeInfoException):
    """Persisting a cache entry failed."""

    code = "cache_write_error"


class DatasetError(GemeindeInfoException):
    """Canonical dataset store could not be queried."""

    status_code = 503
    code = "dataset_unavailable"
