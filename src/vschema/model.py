"""
Schema model and its builder.

``SchemaBuilder`` is the only mutator: declare name, description, version,
thinking mode and fields, then call ``build()`` to obtain an immutable
``SchemaModel`` that serializers, validators and records share.  All
declaration mistakes fail here, never later.

Usage::

    from vschema.model import SchemaBuilder

    builder = SchemaBuilder()
    builder.set_name("article_extraction")
    builder.set_description("Extract article metadata")
    builder.set_version(2)
    builder.add_field("title", "string", required=True)
    builder.add_field("summary", "text", description="A brief summary")
    builder.add_field("legacy_tag", "string", versions="1...2")
    schema = builder.build()

    [f.name for f in schema.active_fields()]   # ["title", "summary"]
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from vschema.errors import (
    DuplicateFieldError,
    InvalidFieldOptionError,
    InvalidSchemaNameError,
    InvalidVersionError,
)
from vschema.fields import ARRAY_ONLY_OPTIONS, OBJECT_ONLY_OPTIONS, FieldKind, FieldSpec
from vschema.versions import parse_versions

logger = logging.getLogger(__name__)

SCHEMA_NAME_PATTERN = r"^[a-zA-Z0-9_-]+$"
CHAIN_OF_THOUGHT_FIELD = "chain_of_thought"

_NAME_RE = re.compile(SCHEMA_NAME_PATTERN)
_QUOTED_RE = re.compile(r"'([a-z_]+)'")

FIELD_OPTIONS = frozenset(
    {"required", "description", "enum", "versions"}
    | set(ARRAY_ONLY_OPTIONS)
    | set(OBJECT_ONLY_OPTIONS)
)


class SchemaModel(BaseModel):
    """Immutable, ordered collection of field specs plus schema metadata."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Optional[str] = Field(None, pattern=SCHEMA_NAME_PATTERN)
    description: Optional[str] = None
    current_version: int = Field(1, ge=1)
    thinking: bool = False
    fields: tuple[FieldSpec, ...] = ()

    _field_map: dict[str, FieldSpec] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._field_map = {f.name: f for f in self.fields}

    # -- lookups -----------------------------------------------------------

    def get_field(self, name: str) -> Optional[FieldSpec]:
        return self._field_map.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._field_map

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def active_fields(self, version: Optional[int] = None) -> list[FieldSpec]:
        """Fields whose range contains ``version`` (default: current version)."""
        target = self.current_version if version is None else version
        return [f for f in self.fields if f.is_active(target)]

    def fields_introduced_in(self, version: int) -> list[FieldSpec]:
        return [f for f in self.fields if f.introduced_in == version]

    def removed_fields(self, version: Optional[int] = None) -> list[FieldSpec]:
        """Fields whose last valid version lies before ``version``."""
        target = self.current_version if version is None else version
        return [
            f
            for f in self.fields
            if f.versions.last_version is not None and f.versions.last_version < target
        ]

    def with_version(self, version: int) -> "SchemaModel":
        """Return a copy of this schema declaring a different current version."""
        _check_version(version)
        return SchemaModel(
            name=self.name,
            description=self.description,
            current_version=version,
            thinking=self.thinking,
            fields=self.fields,
        )


def _option_from_message(message: str) -> str:
    """Recover the offending option from a model-level validator message."""
    match = _QUOTED_RE.search(message)
    if match and match.group(1) in FIELD_OPTIONS:
        return match.group(1)
    return "kind"


def _check_version(version: Any) -> int:
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise InvalidVersionError(version, "schema versions are integers >= 1")
    return version


class SchemaBuilder:
    """Collects schema declarations and produces a ``SchemaModel``.

    Setters return the builder so declarations can be chained.  Concurrent
    use of one builder is not supported; build once per schema owner.
    """

    def __init__(self) -> None:
        self._name: Optional[str] = None
        self._description: Optional[str] = None
        self._version = 1
        self._thinking = False
        self._fields: list[FieldSpec] = []

    def set_name(self, name: str) -> "SchemaBuilder":
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise InvalidSchemaNameError(str(name))
        self._name = name
        return self

    def set_description(self, description: str) -> "SchemaBuilder":
        self._description = description
        return self

    def set_version(self, version: int) -> "SchemaBuilder":
        """Declare the current schema version.

        Fields declared without ``versions`` still default to "version 1
        onward"; this only moves the version the schema serializes for.
        """
        self._version = _check_version(version)
        return self

    def set_thinking(self, enabled: bool) -> "SchemaBuilder":
        self._thinking = bool(enabled)
        return self

    def add_field(self, name: str, kind: str | FieldKind, **options: Any) -> FieldSpec:
        """Declare a field.

        Args:
            name: Field name, unique within the schema.
            kind: One of ``string``, ``text``, ``integer``, ``number``,
                ``boolean``, ``array``, ``object``.
            **options: ``required``, ``description``, ``enum``, ``versions``,
                plus ``items``, ``min_items``, ``max_items``, ``unique_items``
                for arrays and ``properties`` for objects.

        Returns:
            The frozen ``FieldSpec`` that was added.

        Raises:
            DuplicateFieldError: If ``name`` was already declared.
            InvalidFieldOptionError: For unknown or kind-inappropriate options.
            InvalidVersionError: If ``versions`` cannot be interpreted.
        """
        if name == CHAIN_OF_THOUGHT_FIELD:
            raise InvalidFieldOptionError(
                name, "name", "reserved for the synthetic chain-of-thought field"
            )
        if any(f.name == name for f in self._fields):
            raise DuplicateFieldError(name)

        unknown = sorted(set(options) - FIELD_OPTIONS)
        if unknown:
            raise InvalidFieldOptionError(name, unknown[0], "unknown field option")

        try:
            field_kind = FieldKind(kind)
        except ValueError as exc:
            raise InvalidFieldOptionError(
                name, "kind", f"unknown field kind {kind!r}"
            ) from exc

        options["versions"] = parse_versions(options.get("versions"))

        try:
            spec = FieldSpec(name=name, kind=field_kind, **options)
        except ValidationError as exc:
            first = exc.errors()[0]
            option = (
                str(first["loc"][0]) if first["loc"] else _option_from_message(first["msg"])
            )
            raise InvalidFieldOptionError(name, option, first["msg"]) from exc

        self._fields.append(spec)
        logger.debug(
            "Declared field %s (%s) versions=%s",
            name,
            field_kind.value,
            spec.versions.describe(),
        )
        return spec

    def build(self) -> SchemaModel:
        """Produce the immutable schema from the declarations so far."""
        model = SchemaModel(
            name=self._name,
            description=self._description,
            current_version=self._version,
            thinking=self._thinking,
            fields=tuple(self._fields),
        )
        logger.debug(
            "Built schema %s v%d: %d field(s), %d active",
            model.name,
            model.current_version,
            len(model.fields),
            len(model.active_fields()),
        )
        return model
