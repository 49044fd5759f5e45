# tests/unit/test_observability.py
"""Tests for the observability module."""

import json
import logging

from freezegun import freeze_time

from monolith.observability import (
    SLOW_SANITIZE_MS,
    SLOW_VIDEO_IMPORT_MS,
    SvgSanitizeEvent,
    Timer,
    VideoImportEvent,
    emit_event,
    should_sample,
)


class TestSvgSanitizeEvent:
    @freeze_time("2026-01-01 12:00:00")
    def test_creates_event_with_defaults(self):
        event = SvgSanitizeEvent(source_hash="abc123", instance_number=3)

        assert event.event_type == "svg_sanitize"
        assert event.source_hash == "abc123"
        assert event.instance_number == 3
        assert event.timestamp == "2026-01-01T12:00:00Z"
        assert event.outcome == "success"
        assert event.ids_renamed == 0

    def test_preserves_custom_timestamp(self):
        event = SvgSanitizeEvent(timestamp="2025-06-01T00:00:00Z")
        assert event.timestamp == "2025-06-01T00:00:00Z"


class TestVideoImportEvent:
    @freeze_time("2026-01-01 12:00:00")
    def test_creates_event_with_defaults(self):
        event = VideoImportEvent(input_kind="iframe")

        assert event.event_type == "video_import"
        assert event.input_kind == "iframe"
        assert event.timestamp == "2026-01-01T12:00:00Z"
        assert event.service is None
        assert event.metadata_fetched is False

    def test_records_error_state(self):
        event = VideoImportEvent(
            service="vimeo",
            outcome="error",
            error_type="HTTPStatusError",
            error_message="404 Not Found",
        )

        assert event.outcome == "error"
        assert event.error_type == "HTTPStatusError"


class TestShouldSample:
    def test_always_keeps_errors(self):
        assert should_sample({"outcome": "error"}, sample_rate=0.0)

    def test_keeps_slow_sanitize(self):
        event = {"event_type": "svg_sanitize", "wall_time_ms": SLOW_SANITIZE_MS + 1}
        assert should_sample(event, sample_rate=0.0)

    def test_keeps_slow_video_import(self):
        event = {"event_type": "video_import", "wall_time_ms": SLOW_VIDEO_IMPORT_MS + 1}
        assert should_sample(event, sample_rate=0.0)

    def test_fast_video_import_below_threshold_dropped(self):
        """Sanitize threshold does not apply to video imports."""
        event = {"event_type": "video_import", "wall_time_ms": SLOW_SANITIZE_MS + 1}
        assert not should_sample(event, sample_rate=0.0)

    def test_drops_fast_success_at_zero_rate(self):
        assert not should_sample({"event_type": "svg_sanitize", "outcome": "success"}, 0.0)

    def test_keeps_fast_success_at_full_rate(self):
        assert should_sample({"event_type": "svg_sanitize", "outcome": "success"}, 1.0)


class TestEmitEvent:
    def test_emits_dataclass_as_json(self, caplog):
        event = SvgSanitizeEvent(source_hash="abc", ids_renamed=2)

        with caplog.at_level(logging.INFO, logger="monolith"):
            emitted = emit_event(event, force=True)

        assert emitted
        output = json.loads(caplog.records[-1].message)
        assert output["event_type"] == "svg_sanitize"
        assert output["ids_renamed"] == 2

    def test_emits_dict(self, caplog):
        with caplog.at_level(logging.INFO, logger="monolith"):
            emit_event({"event_type": "custom", "outcome": "error"})

        assert json.loads(caplog.records[-1].message)["event_type"] == "custom"

    def test_returns_false_when_dropped(self, caplog):
        with caplog.at_level(logging.INFO, logger="monolith"):
            emitted = emit_event(VideoImportEvent(), sample_rate=0.0)

        assert not emitted
        assert caplog.records == []


class TestTimer:
    def test_measures_elapsed_time(self):
        with Timer() as timer:
            pass

        assert timer.elapsed_ms >= 0
