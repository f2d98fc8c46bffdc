"""
Pydantic v2 models for field declarations.

A ``FieldSpec`` describes one named, typed slot of a versioned record:
its kind, required flag, enum, kind-specific constraints and the version
range in which it exists.  Nested shapes (array items, object properties)
use the recursive ``PropertySchema`` fragment.

All models use ``extra="forbid"`` so misspelled options are rejected at
declaration time, and ``frozen=True`` so a declared field cannot change
once it belongs to a schema.

Usage::

    from vschema.fields import FieldSpec

    spec = FieldSpec(
        name="tags",
        kind="array",
        items={"type": "string"},
        min_items=1,
        unique_items=True,
        versions="2..",
    )
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vschema.versions import DEFAULT_RANGE, VersionRange, parse_versions

_SCALAR_TYPES = (str, int, float, bool, type(None))

ARRAY_ONLY_OPTIONS = ("items", "min_items", "max_items", "unique_items")
OBJECT_ONLY_OPTIONS = ("properties",)

# Field names share the schema name alphabet.
FIELD_NAME_PATTERN = r"^[a-zA-Z0-9_-]+$"


class FieldKind(str, Enum):
    """Declared kind of a field or nested property."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def wire_type(self) -> str:
        """JSON Schema type name; ``text`` is a long-form ``string``."""
        if self is FieldKind.TEXT:
            return FieldKind.STRING.value
        return self.value


def _check_enum(values: Optional[list[Any]]) -> Optional[list[Any]]:
    if values is None:
        return None
    if not values:
        raise ValueError("enum must list at least one value")
    for v in values:
        if not isinstance(v, _SCALAR_TYPES):
            raise ValueError(f"enum values must be scalars, got {type(v).__name__}")
    seen: list[Any] = []
    for v in values:
        if any(v == s and type(v) is type(s) for s in seen):
            raise ValueError(f"enum value {v!r} is listed more than once")
        seen.append(v)
    return list(values)


def _check_kind_options(
    kind: Optional[FieldKind],
    items: Any,
    properties: Any,
    min_items: Optional[int],
    max_items: Optional[int],
    unique_items: Optional[bool],
) -> None:
    if kind is not FieldKind.ARRAY:
        for option, value in (
            ("items", items),
            ("min_items", min_items),
            ("max_items", max_items),
            ("unique_items", unique_items),
        ):
            if value is not None:
                raise ValueError(f"'{option}' is only valid for array fields")
    if kind is not FieldKind.OBJECT and properties is not None:
        raise ValueError("'properties' is only valid for object fields")
    if min_items is not None and max_items is not None and min_items > max_items:
        raise ValueError(
            f"'min_items' ({min_items}) cannot exceed 'max_items' ({max_items})"
        )


# ---------------------------------------------------------------------------
# Nested fragments
# ---------------------------------------------------------------------------


class PropertySchema(BaseModel):
    """Schema fragment for an array item or an object property.

    ``type`` may be omitted, in which case any value is accepted.  The
    ``required`` flag only has meaning for object properties; the serializer
    hoists it into the parent object's ``required`` list.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    type: Optional[FieldKind] = Field(None, description="Kind of the value")
    required: bool = False
    description: Optional[str] = None
    enum: Optional[list[Any]] = None
    properties: Optional[dict[str, PropertySchema]] = None
    items: Optional[PropertySchema] = None
    min_items: Optional[int] = Field(None, ge=0, alias="minItems")
    max_items: Optional[int] = Field(None, ge=0, alias="maxItems")
    unique_items: Optional[bool] = Field(None, alias="uniqueItems")

    @field_validator("enum")
    @classmethod
    def _validate_enum(cls, v: Optional[list[Any]]) -> Optional[list[Any]]:
        return _check_enum(v)

    @model_validator(mode="after")
    def _validate_kind_options(self) -> "PropertySchema":
        if self.type is None:
            return self
        _check_kind_options(
            self.type,
            self.items,
            self.properties,
            self.min_items,
            self.max_items,
            self.unique_items,
        )
        return self

    @property
    def has_properties(self) -> bool:
        return self.type is FieldKind.OBJECT and bool(self.properties)


PropertySchema.model_rebuild()


# ---------------------------------------------------------------------------
# Top-level field
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """Declarative description of one versioned field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, pattern=FIELD_NAME_PATTERN)
    kind: FieldKind
    required: bool = False
    description: Optional[str] = None
    enum: Optional[list[Any]] = None
    items: Optional[PropertySchema] = None
    properties: Optional[dict[str, PropertySchema]] = None
    min_items: Optional[int] = Field(None, ge=0)
    max_items: Optional[int] = Field(None, ge=0)
    unique_items: Optional[bool] = None
    versions: VersionRange = Field(default=DEFAULT_RANGE)

    @field_validator("versions", mode="before")
    @classmethod
    def _coerce_versions(cls, v: Any) -> Any:
        return parse_versions(v)

    @field_validator("enum")
    @classmethod
    def _validate_enum(cls, v: Optional[list[Any]]) -> Optional[list[Any]]:
        return _check_enum(v)

    @model_validator(mode="after")
    def _validate_kind_options(self) -> "FieldSpec":
        _check_kind_options(
            self.kind,
            self.items,
            self.properties,
            self.min_items,
            self.max_items,
            self.unique_items,
        )
        return self

    # -- lifecycle ---------------------------------------------------------

    def is_active(self, version: int) -> bool:
        """Whether this field exists in schema ``version``."""
        return self.versions.contains(version)

    @property
    def introduced_in(self) -> int:
        return self.versions.lower_bound

    @property
    def removed_in(self) -> Optional[int]:
        """First version after the field's last valid version, if bounded."""
        last = self.versions.last_version
        return None if last is None else last + 1
