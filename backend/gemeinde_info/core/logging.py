"""
Structured logging and the per-request wide event.

One canonical log line per API request. The middleware opens the event,
the services record what they did through the ``record_*`` helpers, and
the middleware emits it when the response is sent:

    {"request_id": "3f2a9c1e", "http": {...}, "duration_ms": 840,
     "municipality": {"query": "8001", "bfs_nummer": 261, ...},
     "resolution": {"tier": "plz"},
     "cache": {"hit": false, "category": "operational", "stale": true},
     "discovery": {"method": "sitemap", "fetched": 12, "candidates": 3, "top_score": 0.85},
     "extraction": {"ok": true, "confidence": 0.9}}

Requests that went to the live web, ended on a default record or needed
the BFS directory are always kept; the rest is sampled.
"""

import logging
import random
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import Processor

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.core.models import ResolutionSource, ResolvedAuthority

_request_event: ContextVar[dict[str, Any] | None] = ContextVar("request_event", default=None)
_request_start: ContextVar[float] = ContextVar("request_start", default=0.0)


def enrich_event(**kwargs: Any) -> None:
    """
    Add fields to the current request's wide event. No-op outside a request.

    Dotted keys build nested objects::

        enrich_event(**{"school.district": "Schulkreis Uto"})
    """
    event = _request_event.get()
    if event is None:
        return
    for key, value in kwargs.items():
        target = event
        *parents, leaf = key.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value


def record_resolution(query: str, resolved: ResolvedAuthority) -> None:
    enrich_event(**{
        "municipality.query": query,
        "municipality.bfs_nummer": resolved.bfs_nummer,
        "municipality.name": resolved.gemeinde_name,
        "municipality.ortsteil": resolved.ortsteil,
        "municipality.kanton": resolved.kanton,
        "resolution.tier": resolved.source.value,
    })


def record_cache(hit: bool, category: str, scope: str = "", stale: bool = False, forced: bool = False) -> None:
    enrich_event(cache={
        "hit": hit,
        "category": category,
        "scope": scope or None,
        "stale": stale,
        "forced": forced,
    })


def record_discovery(method: str | None, fetched: int, candidates: int, top_score: float) -> None:
    """method is None when neither the sitemap nor the homepage was usable."""
    enrich_event(discovery={
        "method": method,
        "fetched": fetched,
        "candidates": candidates,
        "top_score": round(top_score, 3),
    })


def record_extraction(ok: bool, reason: str | None, confidence: float) -> None:
    enrich_event(extraction={"ok": ok, "reason": reason, "confidence": confidence})


def init_request_event(
    request_id: str | None = None,
    method: str = "",
    path: str = "",
    client_ip: str = "",
    user_agent: str = "",
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Open the wide event; request_id is also bound to every log line of the request."""
    s = settings or default_settings
    request_id = request_id or uuid.uuid4().hex[:8]
    event = {
        "request_id": request_id,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "http": {
            "method": method,
            "path": path,
            "client_ip": client_ip,
            "user_agent": user_agent[:200] if user_agent else None,
        },
        "service": {
            "name": "gemeinde-info-api",
            "version": s.app_version,
            "environment": s.environment,
        },
    }

    _request_event.set(event)
    _request_start.set(time.perf_counter())
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return event


def finalize_request_event(status_code: int, error: Exception | None = None) -> dict[str, Any]:
    """Close the wide event and return it for emission."""
    event = _request_event.get() or {}
    _request_event.set(None)
    structlog.contextvars.unbind_contextvars("request_id")

    event.setdefault("http", {})["status_code"] = status_code
    event["duration_ms"] = int((time.perf_counter() - _request_start.get()) * 1000)
    event["outcome"] = "success" if status_code < 400 else "error"

    if error:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:500],
        }
        code = getattr(error, "code", None)
        if code:
            event["error"]["code"] = code

    return event


def should_sample(event: dict[str, Any], sample_rate: float, slow_request_ms: int) -> bool:
    """
    Tail sampling decision.

    Always kept: errors, slow requests, live lookups (cache miss or forced
    refresh), default records and resolutions through the BFS directory.
    """
    if event.get("http", {}).get("status_code", 200) >= 400:
        return True
    if event.get("duration_ms", 0) > slow_request_ms:
        return True
    if event.get("cache", {}).get("hit") is False:
        return True
    if event.get("extraction", {}).get("ok") is False:
        return True
    if event.get("resolution", {}).get("tier") == ResolutionSource.OPENDATA.value:
        return True
    return random.random() < sample_rate


def emit_wide_event(event: dict[str, Any], settings: Settings | None = None) -> None:
    """Emit the canonical log line for a request, if sampled."""
    s = settings or default_settings
    if not should_sample(event, s.log_sample_rate, s.log_slow_request_ms):
        return

    log = structlog.get_logger("wide_event")
    status_code = event.get("http", {}).get("status_code", 200)
    if status_code >= 500:
        log.error("request_completed", **event)
    elif status_code >= 400:
        log.warning("request_completed", **event)
    else:
        log.info("request_completed", **event)


def configure_logging(json_logs: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger (uvicorn, SQLAlchemy, httpx).

    Args:
        json_logs: JSON output (production) or colored console (development).
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
