"""Tests for OpenTelemetry span emission around uploads.

Spans must never carry raw paths or file names; paths are exported as
SHA256 digests only.
"""

from __future__ import annotations

import hashlib
import os
from typing import Any

import pytest

from stowage.fields.field import FileField


@pytest.fixture(autouse=True)
def capture_spans(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Enable tracing with the in-memory exporter."""
    monkeypatch.setenv("STOWAGE_OTEL_ENABLED", "1")
    monkeypatch.setenv("STOWAGE_OTEL_TEST_CAPTURE", "1")

    from stowage.observability.tracing import clear_test_spans, configure_tracing, reset_tracing

    reset_tracing()
    configure_tracing()
    clear_test_spans()

    yield

    reset_tracing()


class TestUploadSpans:
    """Tests for pipeline and storage spans."""

    async def test_upload_emits_pipeline_and_move_spans(
        self, destination: str, store: Any, record: Any, stage_file: Any
    ) -> None:
        """An upload produces a stowage.upload span wrapping the move span."""
        from stowage.observability.tracing import get_test_spans

        field = FileField("avatar", {"destination": destination}, store)
        await field.upload(record, stage_file(name="secret-name.png"))

        spans = get_test_spans()
        names = [s.name for s in spans]
        assert "stowage.upload" in names
        assert "stowage.file_store.move" in names

        move_span = next(s for s in spans if s.name == "stowage.file_store.move")
        attrs = dict(move_span.attributes or {})
        expected = hashlib.sha256(
            os.path.join(destination, "secret-name.png").encode("utf-8")
        ).hexdigest()
        assert attrs["stowage.destination_sha256"] == expected
        assert attrs["stowage.overwrite"] is True

        for span in spans:
            for value in (span.attributes or {}).values():
                assert "secret-name" not in str(value)
                assert destination not in str(value)

    async def test_failed_move_marks_span_as_error(
        self, destination: str, store: Any, record: Any, stage_file: Any
    ) -> None:
        """Storage failures are recorded on the span."""
        from stowage.errors import DestinationExistsError
        from stowage.observability.tracing import get_test_spans

        field = FileField("avatar", {"destination": destination, "overwrite": False}, store)
        await field.upload(record, stage_file())

        with pytest.raises(DestinationExistsError):
            await field.upload(record, stage_file())

        failed = [
            s
            for s in get_test_spans()
            if s.name == "stowage.file_store.move" and (s.attributes or {}).get("error")
        ]
        assert failed
        assert failed[0].attributes["error.type"] == "DestinationExistsError"


class TestTracingSettings:
    """Tests for reading tracing options from the environment."""

    def test_defaults_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset options fall back to their defaults."""
        from stowage.observability.tracing import TracingSettings

        monkeypatch.delenv("STOWAGE_OTEL_TEST_CAPTURE")
        for name in ("STOWAGE_OTEL_SERVICE_NAME", "STOWAGE_OTEL_EXPORTER"):
            monkeypatch.delenv(name, raising=False)
        settings = TracingSettings.from_env()

        assert settings.enabled is True
        assert settings.test_capture is False
        assert settings.service_name == "stowage"
        assert settings.exporter == "otlp"
        assert settings.exporter_label == "otlp"

    def test_disabled_settings_do_not_configure(self) -> None:
        """Explicitly disabled settings report tracing as off."""
        from stowage.observability.tracing import TracingSettings, configure_tracing

        assert configure_tracing(TracingSettings(enabled=False)) is False
