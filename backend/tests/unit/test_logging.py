"""
Tests for the per-request wide event: enrichment helpers, lifecycle and
tail sampling.
"""

import pytest
import structlog
from structlog.testing import capture_logs

from gemeinde_info.core.logging import (
    emit_wide_event,
    enrich_event,
    finalize_request_event,
    init_request_event,
    record_cache,
    record_discovery,
    record_extraction,
    record_resolution,
    should_sample,
)
from gemeinde_info.core.models import ResolutionSource, ResolvedAuthority

KLEINDOETTINGEN = ResolvedAuthority(
    gemeinde_name="Böttstein",
    ortsteil="Kleindöttingen",
    bfs_nummer=4023,
    kanton="AG",
    source=ResolutionSource.ORTSTEIL,
)


@pytest.fixture
def event(settings):
    """An open wide event; closed again if the test did not finalize it."""
    opened = init_request_event(request_id="abc123", method="GET", path="/api/v1/municipality/info", settings=settings)
    yield opened
    finalize_request_event(200)


class TestEnrichment:

    def test_noop_outside_request(self):
        enrich_event(**{"cache.hit": True})
        record_cache(True, "operational")

        assert finalize_request_event(200)["http"] == {"status_code": 200}

    def test_dotted_keys_nest(self, event):
        enrich_event(**{"school.district": "Schulkreis Uto", "school.authority_type": "schulkreis"})
        assert event["school"] == {"district": "Schulkreis Uto", "authority_type": "schulkreis"}

    def test_resolution(self, event):
        record_resolution("Kleindöttingen", KLEINDOETTINGEN)

        assert event["municipality"]["query"] == "Kleindöttingen"
        assert event["municipality"]["bfs_nummer"] == 4023
        assert event["municipality"]["ortsteil"] == "Kleindöttingen"
        assert event["resolution"] == {"tier": "ortsteil"}

    def test_cache_and_discovery(self, event):
        record_cache(False, "school_registration", "Schulkreis Uto", stale=True)
        record_discovery("sitemap", fetched=12, candidates=3, top_score=0.84999)
        record_extraction(True, None, 0.9)

        assert event["cache"] == {
            "hit": False,
            "category": "school_registration",
            "scope": "Schulkreis Uto",
            "stale": True,
            "forced": False,
        }
        assert event["discovery"] == {"method": "sitemap", "fetched": 12, "candidates": 3, "top_score": 0.85}
        assert event["extraction"]["ok"] is True

    def test_unscoped_cache_entry(self, event):
        record_cache(True, "operational")
        assert event["cache"]["scope"] is None


class TestLifecycle:

    def test_service_fields(self, settings):
        event = init_request_event(settings=settings)
        finalize_request_event(200)

        assert len(event["request_id"]) == 8
        assert event["service"] == {"name": "gemeinde-info-api", "version": "0.1.0", "environment": "development"}

    def test_request_id_bound_while_open(self, settings):
        init_request_event(request_id="abc123", settings=settings)
        assert structlog.contextvars.get_contextvars()["request_id"] == "abc123"

        finalize_request_event(200)
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_finalize(self, event):
        class Failure(Exception):
            code = "UPSTREAM"

        closed = finalize_request_event(502, Failure("boom"))

        assert closed is event
        assert closed["http"]["status_code"] == 502
        assert closed["outcome"] == "error"
        assert closed["duration_ms"] >= 0
        assert closed["error"] == {"type": "Failure", "message": "boom", "code": "UPSTREAM"}

        enrich_event(late=True)
        assert "late" not in closed


class TestSampling:

    @pytest.mark.parametrize("wide", [
        {"http": {"status_code": 404}},
        {"http": {"status_code": 200}, "duration_ms": 2500},
        {"cache": {"hit": False}},
        {"extraction": {"ok": False}},
        {"resolution": {"tier": "opendata"}},
    ])
    def test_always_kept(self, wide):
        assert should_sample(wide, sample_rate=0.0, slow_request_ms=2000)

    @pytest.mark.parametrize("rate,kept", [(0.0, False), (1.0, True)])
    def test_routine_requests_sampled(self, rate, kept):
        event = {
            "http": {"status_code": 200},
            "duration_ms": 40,
            "cache": {"hit": True},
            "resolution": {"tier": "plz"},
        }
        assert should_sample(event, sample_rate=rate, slow_request_ms=2000) is kept

    def test_emit_levels(self, settings):
        with capture_logs() as logs:
            emit_wide_event({"http": {"status_code": 200}, "cache": {"hit": False}}, settings)
            emit_wide_event({"http": {"status_code": 404}}, settings)
            emit_wide_event({"http": {"status_code": 503}}, settings)

        assert [entry["log_level"] for entry in logs] == ["info", "warning", "error"]
        assert all(entry["event"] == "request_completed" for entry in logs)


@pytest.mark.asyncio
class TestRequestEvent:

    async def test_info_request_logged(self, client):
        with capture_logs() as logs:
            response = await client.get("/api/v1/municipality/info", params={"query": "Kleindöttingen"})

        assert response.status_code == 200
        wide = [entry for entry in logs if entry["event"] == "request_completed"]
        assert len(wide) == 1
        assert wide[0]["resolution"] == {"tier": "ortsteil"}
        assert wide[0]["municipality"]["name"] == "Böttstein"
        assert wide[0]["cache"]["hit"] is False
        assert wide[0]["http"]["status_code"] == 200

    async def test_health_not_logged(self, client):
        with capture_logs() as logs:
            await client.get("/api/health")

        assert not [entry for entry in logs if entry["event"] == "request_completed"]
