"""
Record conformance validation.

Checks a candidate record (a mapping of field name to value) against the
fields of a ``SchemaModel`` that exist in the record's own stored version.
Fields outside that version are skipped, never reported missing, because
the record could not have supplied them.

Per field, checks run in this order and stop at the first failure:

1. required    → ``RequiredFieldError`` (``None``, ``""``, ``[]``, ``{}``)
2. type        → ``TypeMismatchError``
3. enum        → ``EnumValidationError``
4. array rules → ``ArrayConstraintError`` (cardinality, uniqueness, items)
5. object rules → ``ObjectValidationError`` (nested properties)

Nested object properties are validated to full depth, including objects
inside objects and arrays inside objects.

With ``fail_fast`` (the default) the first failing field raises
immediately.  Otherwise the first failure of every field is collected and
raised together as ``ValidationFailedError``.

Usage::

    from vschema.validator import FieldValidator

    validator = FieldValidator(schema)
    outcome = validator.validate({"title": "Hello", "version": 2})
    outcome.checked_fields   # ["title", ...]
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Hashable, Mapping
from typing import Any, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from vschema.config import VSchemaConfig
from vschema.errors import (
    ArrayConstraintError,
    EnumValidationError,
    LLMValidationError,
    ObjectValidationError,
    RequiredFieldError,
    TypeMismatchError,
    ValidationFailedError,
)
from vschema.fields import FieldKind, FieldSpec, PropertySchema
from vschema.model import SchemaModel
from vschema.otel import emit_validation_failed, emit_validation_passed
from vschema.versions import coerce_record_version

logger = logging.getLogger(__name__)

MISSING_PROPERTY = "required property is missing"

ArrayShape = Union[FieldSpec, PropertySchema]


class ValidationOutcome(BaseModel):
    """Result of validating one record."""

    model_config = ConfigDict(extra="forbid")

    valid: bool
    record_version: int
    checked_fields: list[str] = Field(default_factory=list)
    skipped_fields: list[str] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Type helpers
# ---------------------------------------------------------------------------


def matches_kind(value: Any, kind: FieldKind) -> bool:
    """Whether ``value``'s runtime shape matches ``kind``."""
    if kind in (FieldKind.STRING, FieldKind.TEXT):
        return isinstance(value, str)
    if kind is FieldKind.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is FieldKind.NUMBER:
        return isinstance(value, numbers.Real) and not isinstance(value, bool)
    if kind is FieldKind.BOOLEAN:
        return isinstance(value, bool)
    if kind is FieldKind.ARRAY:
        return isinstance(value, (list, tuple))
    if kind is FieldKind.OBJECT:
        return isinstance(value, Mapping)
    return True


def type_name(value: Any) -> str:
    """JSON-flavoured name of ``value``'s type for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, numbers.Real):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__.lower()


def in_enum(value: Any, allowed: list[Any]) -> bool:
    """Enum membership that never confuses booleans with 0/1."""
    for candidate in allowed:
        if isinstance(value, bool) != isinstance(candidate, bool):
            continue
        if value == candidate:
            return True
    return False


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value) == 0
    return False


def _unique_key(item: Any) -> Hashable:
    """Hashable, type-preserving identity of a JSON-shaped value."""
    if item is None:
        return ("null",)
    if isinstance(item, bool):
        return ("boolean", item)
    if isinstance(item, numbers.Real):
        return ("number", item)
    if isinstance(item, str):
        return ("string", item)
    if isinstance(item, (list, tuple)):
        return ("array", tuple(_unique_key(v) for v in item))
    if isinstance(item, Mapping):
        return (
            "object",
            frozenset((_unique_key(k), _unique_key(v)) for k, v in item.items()),
        )
    return (type(item).__name__, repr(item))


# ---------------------------------------------------------------------------
# Nested walkers
# ---------------------------------------------------------------------------


class _Violation(NamedTuple):
    path: str
    reason: str
    value: Any


class _ArrayProblem(NamedTuple):
    constraint: str
    index: Optional[int]
    value: Any


def _property_problem(
    properties: dict[str, PropertySchema], obj: Mapping
) -> Optional[_Violation]:
    """First violation among ``properties`` of ``obj``, depth-first."""
    for name, prop in properties.items():
        value = obj.get(name)

        if value is None:
            if prop.required:
                return _Violation(name, MISSING_PROPERTY, obj)
            continue

        if prop.type is not None and not matches_kind(value, prop.type):
            return _Violation(
                name,
                f"expected {prop.type.value}, got {type_name(value)}: {value!r}",
                value,
            )

        if prop.enum is not None and not in_enum(value, prop.enum):
            return _Violation(
                name,
                f"value {value!r} is not in allowed values: {prop.enum!r}",
                value,
            )

        if prop.has_properties:
            nested = _property_problem(prop.properties, value)
            if nested is not None:
                return _Violation(f"{name}.{nested.path}", nested.reason, nested.value)

        if prop.type is FieldKind.ARRAY:
            problem = _array_problem(prop, value)
            if problem is not None:
                return _Violation(name, problem.constraint, problem.value)

    return None


def _array_problem(shape: ArrayShape, array: Any) -> Optional[_ArrayProblem]:
    """First cardinality, uniqueness or item violation of ``array``."""
    length = len(array)

    if shape.min_items is not None and length < shape.min_items:
        return _ArrayProblem(
            f"must have at least {shape.min_items} items, got {length}", None, array
        )
    if shape.max_items is not None and length > shape.max_items:
        return _ArrayProblem(
            f"must have at most {shape.max_items} items, got {length}", None, array
        )
    if shape.unique_items:
        keys = [_unique_key(item) for item in array]
        if len(set(keys)) != len(keys):
            return _ArrayProblem("items must be unique", None, array)

    items = shape.items
    if items is None:
        return None

    for index, item in enumerate(array):
        where = f"item at index {index}"

        if items.type is not None and not matches_kind(item, items.type):
            return _ArrayProblem(
                f"{where} expected {items.type.value}, got {type_name(item)}: {item!r}",
                index,
                item,
            )

        if items.enum is not None and not in_enum(item, items.enum):
            return _ArrayProblem(
                f"{where} value {item!r} is not in allowed values: {items.enum!r}",
                index,
                item,
            )

        if items.has_properties and isinstance(item, Mapping):
            violation = _property_problem(items.properties, item)
            if violation is not None:
                if violation.reason == MISSING_PROPERTY:
                    message = f"{where} is missing required property '{violation.path}'"
                else:
                    message = f"{where} property '{violation.path}' {violation.reason}"
                return _ArrayProblem(message, index, violation.value)

        if items.type is FieldKind.ARRAY and isinstance(item, (list, tuple)):
            nested = _array_problem(items, item)
            if nested is not None:
                return _ArrayProblem(f"{where} {nested.constraint}", index, nested.value)

    return None


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class FieldValidator:
    """Validates records against the version-filtered fields of a schema."""

    def __init__(self, schema: SchemaModel, config: Optional[VSchemaConfig] = None) -> None:
        self._schema = schema
        self._config = config or VSchemaConfig()

    @property
    def schema(self) -> SchemaModel:
        return self._schema

    def record_version_of(self, data: Mapping) -> int:
        return coerce_record_version(
            data.get(self._config.version_key), self._config.default_record_version
        )

    def validate(
        self,
        data: Mapping,
        record: Any = None,
        version: Optional[int] = None,
    ) -> ValidationOutcome:
        """Validate ``data`` and return the outcome, raising on violations.

        Args:
            data: Field name to value mapping.  Never mutated.
            record: Back-reference attached to raised errors; defaults to
                ``data`` itself.
            version: Version to validate against; defaults to the version
                stored in ``data``.

        Raises:
            LLMValidationError: First violation, when ``fail_fast`` is set.
            ValidationFailedError: All violations, when ``fail_fast`` is off.
            InvalidVersionError: If the stored version is not a version number.
        """
        record_version = self.record_version_of(data) if version is None else version
        record = data if record is None else record
        checked: list[str] = []
        skipped: list[str] = []
        errors: list[LLMValidationError] = []

        for spec in self._schema.fields:
            if not spec.is_active(record_version):
                skipped.append(spec.name)
                continue
            checked.append(spec.name)
            try:
                self.validate_field(spec, data.get(spec.name), record=record)
            except LLMValidationError as exc:
                self._emit_failure(exc)
                if self._config.fail_fast:
                    raise
                errors.append(exc)

        if errors:
            raise ValidationFailedError(errors, record=record)

        if skipped:
            logger.debug(
                "Skipped %d field(s) outside record version %d: %s",
                len(skipped),
                record_version,
                ", ".join(skipped),
            )

        outcome = ValidationOutcome(
            valid=True,
            record_version=record_version,
            checked_fields=checked,
            skipped_fields=skipped,
        )
        if self._config.emit_telemetry:
            emit_validation_passed(self._schema.name, outcome)
        return outcome

    def collect(
        self,
        data: Mapping,
        record: Any = None,
        version: Optional[int] = None,
    ) -> list[LLMValidationError]:
        """Return the first violation of every applicable field without raising."""
        record_version = self.record_version_of(data) if version is None else version
        record = data if record is None else record
        errors: list[LLMValidationError] = []
        for spec in self._schema.active_fields(record_version):
            try:
                self.validate_field(spec, data.get(spec.name), record=record)
            except LLMValidationError as exc:
                errors.append(exc)
        return errors

    def check(self, data: Mapping, version: Optional[int] = None) -> ValidationOutcome:
        """Non-raising variant of ``validate`` reporting errors on the outcome."""
        record_version = self.record_version_of(data) if version is None else version
        errors = self.collect(data, version=record_version)
        active = self._schema.active_fields(record_version)
        active_names = {spec.name for spec in active}
        return ValidationOutcome(
            valid=not errors,
            record_version=record_version,
            checked_fields=[spec.name for spec in active],
            skipped_fields=[n for n in self._schema.field_names if n not in active_names],
            errors=[e.to_dict() for e in errors],
        )

    def validate_field(self, spec: FieldSpec, value: Any, record: Any = None) -> None:
        """Run every check for one field, raising the first violation."""
        name = spec.name

        if spec.required and _is_blank(value):
            raise RequiredFieldError(name, value=value, record=record)
        if value is None:
            return

        if not matches_kind(value, spec.kind):
            raise TypeMismatchError(
                name, value, spec.kind.value, type_name(value), record=record
            )

        if spec.enum is not None and not in_enum(value, spec.enum):
            raise EnumValidationError(name, value, spec.enum, record=record)

        if spec.kind is FieldKind.ARRAY:
            problem = _array_problem(spec, value)
            if problem is not None:
                raise ArrayConstraintError(
                    name,
                    problem.value,
                    problem.constraint,
                    index=problem.index,
                    record=record,
                )

        if spec.kind is FieldKind.OBJECT and spec.properties:
            violation = _property_problem(spec.properties, value)
            if violation is not None:
                raise ObjectValidationError(
                    name,
                    violation.value,
                    violation.path,
                    violation.reason,
                    record=record,
                )

    def _emit_failure(self, error: LLMValidationError) -> None:
        if self._config.emit_telemetry:
            emit_validation_failed(self._schema.name, error)


def validate(
    schema: SchemaModel,
    data: Mapping,
    config: Optional[VSchemaConfig] = None,
    record: Any = None,
) -> ValidationOutcome:
    """Convenience wrapper around ``FieldValidator.validate``."""
    return FieldValidator(schema, config).validate(data, record=record)
