"""
Wire-schema serialization.

Projects a ``SchemaModel`` onto the JSON-Schema-shaped description handed to
an external generator.  Only fields active at the schema's current version
are emitted; nested ``required`` flags are hoisted into a sibling
``required`` list on each object fragment.

Output shape::

    {
        "name": "...",
        "description": "...",
        "parameters": {
            "type": "object",
            "required": ["title"],
            "properties": {"title": {"type": "string"}, ...},
        },
    }

``name`` and ``description`` are left out when the schema does not set them.

Usage::

    from vschema.serializer import SchemaSerializer

    wire = SchemaSerializer(schema).to_json_schema()
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from vschema.config import VSchemaConfig
from vschema.fields import FieldSpec, PropertySchema
from vschema.model import CHAIN_OF_THOUGHT_FIELD, SchemaModel

logger = logging.getLogger(__name__)


class SchemaSerializer:
    """Serializes the active-version view of a schema."""

    def __init__(self, schema: SchemaModel, config: Optional[VSchemaConfig] = None) -> None:
        self._schema = schema
        self._config = config or VSchemaConfig()

    @property
    def schema(self) -> SchemaModel:
        return self._schema

    def to_json_schema(self) -> dict[str, Any]:
        """Build the wire schema for ``schema.current_version``."""
        active = self._schema.active_fields()

        properties: dict[str, Any] = {}
        if self._schema.thinking:
            properties[CHAIN_OF_THOUGHT_FIELD] = {
                "type": "string",
                "description": self._config.chain_of_thought_description,
            }
        for spec in active:
            properties[spec.name] = self._field_to_wire(spec)

        required = [spec.name for spec in active if spec.required]

        logger.debug(
            "Serialized schema %s v%d: %d of %d field(s) active",
            self._schema.name,
            self._schema.current_version,
            len(active),
            len(self._schema.fields),
        )

        wire: dict[str, Any] = {}
        if self._schema.name is not None:
            wire["name"] = self._schema.name
        if self._schema.description is not None:
            wire["description"] = self._schema.description
        wire["parameters"] = {
            "type": "object",
            "required": required,
            "properties": properties,
        }
        return wire

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_json_schema(), indent=indent)

    # -- internal helpers --------------------------------------------------

    @staticmethod
    def _field_to_wire(spec: FieldSpec) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": spec.kind.wire_type}
        if spec.description:
            prop["description"] = spec.description
        if spec.enum is not None:
            prop["enum"] = list(spec.enum)

        if spec.items is not None:
            prop["items"] = fragment_to_wire(spec.items)
        if spec.min_items is not None:
            prop["minItems"] = spec.min_items
        if spec.max_items is not None:
            prop["maxItems"] = spec.max_items
        if spec.unique_items is not None:
            prop["uniqueItems"] = spec.unique_items

        if spec.properties is not None:
            _add_object_properties(prop, spec.properties)
        return prop


def fragment_to_wire(fragment: PropertySchema) -> dict[str, Any]:
    """Render a nested fragment, dropping its own ``required`` flag."""
    out: dict[str, Any] = {}
    if fragment.type is not None:
        out["type"] = fragment.type.wire_type
    if fragment.description:
        out["description"] = fragment.description
    if fragment.enum is not None:
        out["enum"] = list(fragment.enum)
    if fragment.items is not None:
        out["items"] = fragment_to_wire(fragment.items)
    if fragment.min_items is not None:
        out["minItems"] = fragment.min_items
    if fragment.max_items is not None:
        out["maxItems"] = fragment.max_items
    if fragment.unique_items is not None:
        out["uniqueItems"] = fragment.unique_items
    if fragment.properties is not None:
        _add_object_properties(out, fragment.properties)
    return out


def _add_object_properties(target: dict[str, Any], properties: dict[str, PropertySchema]) -> None:
    target["properties"] = {
        name: fragment_to_wire(fragment) for name, fragment in properties.items()
    }
    required = [name for name, fragment in properties.items() if fragment.required]
    if required:
        target["required"] = required


def serialize(schema: SchemaModel, config: Optional[VSchemaConfig] = None) -> dict[str, Any]:
    """Convenience wrapper around ``SchemaSerializer.to_json_schema``."""
    return SchemaSerializer(schema, config).to_json_schema()
