"""
YAML schema loader with per-path caching.

A schema file declares the same things as the builder API::

    name: article_extraction
    description: Extract article metadata
    version: 2
    thinking: true
    fields:
      - name: title
        type: string
        required: true
      - name: tags
        type: array
        items: {type: string}
        min_items: 1
        versions: "2.."

The document is validated by ``SchemaDocument`` (``extra="forbid"``) and
then replayed through ``SchemaBuilder`` so every declaration rule applies.

Usage::

    from vschema.loader import SchemaLoader

    loader = SchemaLoader()
    schema = loader.load(Path("article.schema.yaml"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, ClassVar, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from vschema.fields import FieldKind, PropertySchema
from vschema.model import SchemaBuilder, SchemaModel

logger = logging.getLogger(__name__)


class FieldDeclaration(BaseModel):
    """One entry of a schema file's ``fields`` list."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    type: FieldKind
    required: bool = False
    description: Optional[str] = None
    enum: Optional[list[Any]] = None
    items: Optional[PropertySchema] = None
    properties: Optional[dict[str, PropertySchema]] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None
    versions: Any = Field(None, description="int, list, range string or mapping")

    def options(self) -> dict[str, Any]:
        """Builder keyword options, omitting anything not declared."""
        return self.model_dump(exclude={"name", "type"}, exclude_none=True)


class SchemaDocument(BaseModel):
    """Root model for a schema YAML file."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    version: int = Field(1, ge=1)
    thinking: bool = False
    fields: list[FieldDeclaration] = Field(default_factory=list)

    def to_schema(self) -> SchemaModel:
        builder = SchemaBuilder()
        if self.name is not None:
            builder.set_name(self.name)
        if self.description is not None:
            builder.set_description(self.description)
        builder.set_version(self.version)
        builder.set_thinking(self.thinking)
        for decl in self.fields:
            options = decl.options()
            # Pass nested fragments through as models, not dumped dicts.
            if decl.items is not None:
                options["items"] = decl.items
            if decl.properties is not None:
                options["properties"] = decl.properties
            builder.add_field(decl.name, decl.type, **options)
        return builder.build()


class SchemaLoader:
    """Loads and caches schemas from YAML files."""

    _cache: ClassVar[dict[str, SchemaModel]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the schema cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Path) -> SchemaModel:
        """Load a schema from a YAML file.

        Args:
            path: Path to the YAML schema file.

        Returns:
            Built, immutable ``SchemaModel``.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the YAML root is not a mapping.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If the YAML does not match the document shape.
            SchemaBuildError: If a declaration is rejected by the builder.
        """
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("Schema cache hit: %s", key)
            return self._cache[key]

        if not path.exists():
            raise FileNotFoundError(f"Schema file not found: {path}")

        with open(path) as fh:
            raw = yaml.safe_load(fh)

        schema = self._build(raw, source=str(path))
        self._cache[key] = schema

        logger.debug(
            "Loaded schema %s v%d from %s: fields=%d",
            schema.name,
            schema.current_version,
            key,
            len(schema.fields),
        )
        return schema

    def load_from_string(self, yaml_str: str) -> SchemaModel:
        """Load a schema from a YAML string (convenience for testing)."""
        return self._build(yaml.safe_load(yaml_str), source="<string>")

    @staticmethod
    def _build(raw: Any, source: str) -> SchemaModel:
        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected YAML mapping at root of {source}, got {type(raw).__name__}"
            )
        return SchemaDocument.model_validate(raw).to_schema()
