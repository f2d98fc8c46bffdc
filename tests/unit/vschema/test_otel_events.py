"""Tests for OTel span event emission on validation and field access."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from vschema.config import VSchemaConfig
from vschema.errors import (
    RemovedFieldError,
    RequiredFieldError,
    TypeMismatchError,
    ValidationFailedError,
)
from vschema.otel import (
    EVENT_ACCESS_DENIED,
    EVENT_VALIDATION_FAILED,
    EVENT_VALIDATION_PASSED,
    add_span_event,
    emit_access_denied,
    emit_validation_failed,
)
from vschema.record import VersionedRecord
from vschema.validator import FieldValidator


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_span():
    """Create a mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span):
    """Patch OTel to return our mock span."""
    with patch("vschema.otel.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span


@pytest.fixture
def telemetry_config() -> VSchemaConfig:
    return VSchemaConfig(emit_telemetry=True)


def _event_names(span):
    return [c.kwargs["name"] for c in span.add_event.call_args_list]


# ---------------------------------------------------------------------------
# add_span_event
# ---------------------------------------------------------------------------


class TestAddSpanEvent:
    def test_adds_to_recording_span(self, mock_otel):
        add_span_event("x.event", {"a": 1})
        mock_otel.add_event.assert_called_once_with(name="x.event", attributes={"a": 1})

    def test_skips_non_recording_span(self, mock_otel):
        mock_otel.is_recording.return_value = False
        add_span_event("x.event", {"a": 1})
        mock_otel.add_event.assert_not_called()


# ---------------------------------------------------------------------------
# Direct emitters
# ---------------------------------------------------------------------------


class TestEmitters:
    def test_validation_failed_attributes(self, mock_otel):
        error = TypeMismatchError("title", 1, "string", "integer")
        emit_validation_failed("article", error)
        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == EVENT_VALIDATION_FAILED
        attrs = call_args.kwargs["attributes"]
        assert attrs["schema.name"] == "article"
        assert attrs["schema.error_kind"] == "TypeMismatchError"
        assert attrs["schema.field"] == "title"
        assert attrs["schema.message"] == str(error)

    def test_access_denied_attributes(self, mock_otel):
        emit_access_denied(None, RemovedFieldError("legacy", 3), 3, 3)
        attrs = mock_otel.add_event.call_args.kwargs["attributes"]
        assert attrs["schema.name"] == ""
        assert attrs["schema.error_kind"] == "RemovedFieldError"
        assert attrs["schema.record_version"] == 3
        assert attrs["schema.current_version"] == 3


# ---------------------------------------------------------------------------
# Emission from consumers
# ---------------------------------------------------------------------------


class TestConsumerEmission:
    def test_validation_passed(self, mock_otel, article_schema, telemetry_config):
        FieldValidator(article_schema, telemetry_config).validate({"title": "T"})
        assert _event_names(mock_otel) == [EVENT_VALIDATION_PASSED]
        attrs = mock_otel.add_event.call_args.kwargs["attributes"]
        assert attrs["schema.record_version"] == 1
        assert attrs["schema.fields_checked"] == 4
        assert attrs["schema.fields_skipped"] == 2

    def test_validation_failed(self, mock_otel, article_schema, telemetry_config):
        with pytest.raises(RequiredFieldError):
            FieldValidator(article_schema, telemetry_config).validate({})
        assert _event_names(mock_otel) == [EVENT_VALIDATION_FAILED]

    def test_one_event_per_failing_field(self, mock_otel, article_schema):
        config = VSchemaConfig(emit_telemetry=True, fail_fast=False)
        with pytest.raises(ValidationFailedError):
            FieldValidator(article_schema, config).validate({"category": "sports"})
        assert _event_names(mock_otel) == [EVENT_VALIDATION_FAILED] * 2

    def test_access_denied(self, mock_otel, article_schema, telemetry_config):
        record = VersionedRecord(article_schema, {"version": 3}, telemetry_config)
        with pytest.raises(RemovedFieldError):
            record.get("legacy")
        assert _event_names(mock_otel) == [EVENT_ACCESS_DENIED]

    def test_disabled_telemetry_emits_nothing(self, mock_otel, article_schema, config):
        with pytest.raises(RequiredFieldError):
            FieldValidator(article_schema, config).validate({})
        VersionedRecord(article_schema, {"title": "T"}, config).get("title")
        mock_otel.add_event.assert_not_called()
