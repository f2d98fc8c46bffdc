"""
Exception taxonomy for versioned schemas.

Three families, each meant to be handled differently by callers:

- ``SchemaBuildError``: raised while a schema is being declared.  Always a
  programming error; never deferred to validation or access time.
- ``LLMValidationError``: raised when a generated record does not conform
  to the active fields.  Callers typically branch on the subclass to decide
  whether to retry the generation step.
- ``FieldAccessError``: raised when a stored record is read under a schema
  version in which the requested field is not available.

Usage::

    from vschema.errors import RequiredFieldError, TypeMismatchError

    try:
        record.upgrade(**llm_response)
    except TypeMismatchError as exc:
        retry_with_hint(exc.field_name, exc.expected_type)
    except RequiredFieldError as exc:
        retry_with_hint(exc.field_name, "required")
"""

from __future__ import annotations

from typing import Any, Optional


class VSchemaError(Exception):
    """Base error for all vschema failures."""


# ---------------------------------------------------------------------------
# Build-time
# ---------------------------------------------------------------------------


class SchemaBuildError(VSchemaError):
    """Raised when a schema declaration is invalid."""


class InvalidSchemaNameError(SchemaBuildError):
    """Schema name does not match ``^[a-zA-Z0-9_-]+$``."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Invalid schema name '{name}': only letters, digits, "
            f"underscores and hyphens are allowed"
        )


class DuplicateFieldError(SchemaBuildError):
    """A field with the same name was already declared."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is already defined in this schema")


class InvalidFieldOptionError(SchemaBuildError):
    """A field option is unknown or inappropriate for the field's kind."""

    def __init__(self, field_name: str, option: str, reason: str) -> None:
        self.field_name = field_name
        self.option = option
        self.reason = reason
        super().__init__(f"Field '{field_name}' option '{option}': {reason}")


class InvalidVersionError(SchemaBuildError):
    """A version number or version declaration could not be interpreted."""

    def __init__(self, value: Any, reason: str = "") -> None:
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid version declaration {value!r}{detail}")


# ---------------------------------------------------------------------------
# Validation-time
# ---------------------------------------------------------------------------


class LLMValidationError(VSchemaError):
    """
    Base class for record conformance failures.

    Attributes:
        field_name: Top-level field that failed.
        value: The offending value (the whole field value, an array item
            or a nested property value depending on the failure).
        record: Back-reference to the record being validated, if any.
    """

    def __init__(
        self,
        field_name: str,
        message: str,
        value: Any = None,
        record: Any = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.record = record
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialize for retry prompts and structured logs."""
        return {
            "error": self.kind,
            "field": self.field_name,
            "message": str(self),
            "value": self.value,
        }


class RequiredFieldError(LLMValidationError):
    """A required field is missing, ``None`` or empty."""

    def __init__(self, field_name: str, value: Any = None, record: Any = None) -> None:
        super().__init__(
            field_name,
            f"Required field '{field_name}' is missing",
            value=value,
            record=record,
        )


class TypeMismatchError(LLMValidationError):
    """The field value's runtime type does not match the declared kind."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        expected_type: str,
        actual_type: str,
        record: Any = None,
    ) -> None:
        self.expected_type = expected_type
        self.actual_type = actual_type
        super().__init__(
            field_name,
            f"Field '{field_name}' expected {expected_type}, "
            f"got {actual_type}: {value!r}",
            value=value,
            record=record,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["expected_type"] = self.expected_type
        data["actual_type"] = self.actual_type
        return data


class EnumValidationError(LLMValidationError):
    """The field value is not one of the declared enum members."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        allowed_values: list[Any],
        record: Any = None,
    ) -> None:
        self.allowed_values = list(allowed_values)
        super().__init__(
            field_name,
            f"Field '{field_name}' value {value!r} is not in allowed values: "
            f"{self.allowed_values!r}",
            value=value,
            record=record,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["allowed_values"] = self.allowed_values
        return data


class ArrayConstraintError(LLMValidationError):
    """
    Cardinality, uniqueness or item-shape violation for an array field.

    Attributes:
        constraint: Human-readable description of the violated constraint.
        index: Index of the offending item for item-level failures.
    """

    def __init__(
        self,
        field_name: str,
        value: Any,
        constraint: str,
        index: Optional[int] = None,
        record: Any = None,
    ) -> None:
        self.constraint = constraint
        self.index = index
        super().__init__(
            field_name,
            f"Field '{field_name}' {constraint}",
            value=value,
            record=record,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["constraint"] = self.constraint
        if self.index is not None:
            data["index"] = self.index
        return data


class ObjectValidationError(LLMValidationError):
    """A property of an object field is missing or malformed."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        property_name: str,
        reason: str,
        record: Any = None,
    ) -> None:
        self.property_name = property_name
        self.reason = reason
        super().__init__(
            field_name,
            f"Field '{field_name}' property '{property_name}': {reason}",
            value=value,
            record=record,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["property"] = self.property_name
        data["reason"] = self.reason
        return data


class ValidationFailedError(VSchemaError):
    """
    Aggregate of every field violation, raised when fail-fast is disabled.

    Attributes:
        errors: One ``LLMValidationError`` per failing field, in schema order.
        record: Back-reference to the record being validated, if any.
    """

    def __init__(self, errors: list[LLMValidationError], record: Any = None) -> None:
        self.errors = list(errors)
        self.record = record
        summaries = "; ".join(str(e) for e in self.errors[:3])
        if len(self.errors) > 3:
            summaries += f" (and {len(self.errors) - 3} more)"
        super().__init__(
            f"Record failed validation with {len(self.errors)} error(s): {summaries}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_count": len(self.errors),
            "errors": [e.to_dict() for e in self.errors],
        }


# ---------------------------------------------------------------------------
# Access-time
# ---------------------------------------------------------------------------


class FieldAccessError(VSchemaError):
    """Base class for version-gated read/write failures."""

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        super().__init__(message)


class MissingFieldError(FieldAccessError):
    """
    The field exists in the schema but was introduced after the record's
    version.  Retryable: set new values on the record and save it.
    """

    def __init__(self, field_name: str, record_version: int, introduced_in: int) -> None:
        self.record_version = record_version
        self.introduced_in = introduced_in
        super().__init__(
            field_name,
            f"Field '{field_name}' does not exist in version {record_version}. "
            f"It was introduced in version {introduced_in}. "
            "To access this field, upgrade the record by setting new field "
            "values and saving.",
        )


class RemovedFieldError(FieldAccessError):
    """The field was removed before the current schema version."""

    def __init__(self, field_name: str, removed_in_version: int) -> None:
        self.removed_in_version = removed_in_version
        super().__init__(
            field_name,
            f"Field '{field_name}' has been removed in version {removed_in_version}. "
            "This field is no longer available in the current schema.",
        )


class VersionRangeError(FieldAccessError):
    """The field is not available for this record's version."""

    def __init__(self, field_name: str, record_version: int, valid_versions: Any) -> None:
        self.record_version = record_version
        self.valid_versions = valid_versions
        described = (
            valid_versions.describe()
            if hasattr(valid_versions, "describe")
            else str(valid_versions)
        )
        super().__init__(
            field_name,
            f"Field '{field_name}' is not available in version {record_version}. "
            f"This field is only available in versions: {described}.",
        )


class UnknownFieldError(FieldAccessError):
    """The field was never declared in the schema."""

    def __init__(self, field_name: str) -> None:
        super().__init__(field_name, f"Field '{field_name}' is not defined in the schema")
