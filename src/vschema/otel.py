"""
OTel span event emission for validation and field access decisions.

Events are added to the current span only when it is recording, so the
helpers cost nothing outside a traced request.  Logging happens alongside
each event; raising remains the caller-visible outcome.

Usage::

    from vschema.otel import emit_validation_failed

    emit_validation_failed("article_extraction", error)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from opentelemetry import trace as otel_trace

from vschema.errors import FieldAccessError, LLMValidationError

if TYPE_CHECKING:
    from vschema.validator import ValidationOutcome

logger = logging.getLogger(__name__)

EVENT_VALIDATION_PASSED = "schema.validation.passed"
EVENT_VALIDATION_FAILED = "schema.validation.failed"
EVENT_ACCESS_DENIED = "schema.field.access_denied"


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"schema.validation.failed"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_validation_passed(schema_name: Optional[str], outcome: "ValidationOutcome") -> None:
    """Event name: ``schema.validation.passed``"""
    logger.debug(
        "Record valid for schema %s v%d: checked=%d skipped=%d",
        schema_name,
        outcome.record_version,
        len(outcome.checked_fields),
        len(outcome.skipped_fields),
    )
    add_span_event(
        EVENT_VALIDATION_PASSED,
        {
            "schema.name": schema_name or "",
            "schema.record_version": outcome.record_version,
            "schema.fields_checked": len(outcome.checked_fields),
            "schema.fields_skipped": len(outcome.skipped_fields),
        },
    )


def emit_validation_failed(schema_name: Optional[str], error: LLMValidationError) -> None:
    """Event name: ``schema.validation.failed``"""
    logger.warning(
        "Record invalid for schema %s: %s on field %s: %s",
        schema_name,
        error.kind,
        error.field_name,
        error,
    )
    add_span_event(
        EVENT_VALIDATION_FAILED,
        {
            "schema.name": schema_name or "",
            "schema.error_kind": error.kind,
            "schema.field": error.field_name,
            "schema.message": str(error),
        },
    )


def emit_access_denied(
    schema_name: Optional[str],
    error: FieldAccessError,
    record_version: int,
    current_version: int,
) -> None:
    """Event name: ``schema.field.access_denied``"""
    logger.warning(
        "Field access denied on schema %s: %s (record v%d, schema v%d)",
        schema_name,
        error.field_name,
        record_version,
        current_version,
    )
    add_span_event(
        EVENT_ACCESS_DENIED,
        {
            "schema.name": schema_name or "",
            "schema.field": error.field_name,
            "schema.error_kind": type(error).__name__,
            "schema.record_version": record_version,
            "schema.current_version": current_version,
        },
    )
