"""
Pytest configuration and fixtures for vschema tests.
"""

from __future__ import annotations

import os
from typing import Generator

import pytest

from vschema.config import VSchemaConfig
from vschema.loader import SchemaLoader
from vschema.model import SchemaBuilder, SchemaModel


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep VSCHEMA_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("VSCHEMA_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def clear_schema_cache() -> Generator[None, None, None]:
    SchemaLoader.clear_cache()
    yield
    SchemaLoader.clear_cache()


@pytest.fixture
def config() -> VSchemaConfig:
    """Config with telemetry off so tests do not depend on a tracer."""
    return VSchemaConfig(emit_telemetry=False)


# ============================================================================
# Schema Fixtures
# ============================================================================


@pytest.fixture
def article_schema() -> SchemaModel:
    """Article schema at version 3 with fields across the lifecycle."""
    builder = SchemaBuilder()
    builder.set_name("article_extraction")
    builder.set_description("Extract article metadata")
    builder.set_version(3)
    builder.add_field("title", "string", required=True, description="The title")
    builder.add_field("category", "string", enum=["tech", "business", "science"])
    builder.add_field("summary", "text", versions=2)
    builder.add_field("legacy", "string", versions="1...3")
    builder.add_field("keywords", "array", items={"type": "string"}, versions=[1, 2])
    builder.add_field("sentiment", "number", versions="3..")
    return builder.build()


@pytest.fixture
def nested_schema() -> SchemaModel:
    """Schema exercising array and object constraints."""
    builder = SchemaBuilder().set_name("nested")
    builder.add_field(
        "tags",
        "array",
        items={"type": "string"},
        min_items=1,
        max_items=3,
        unique_items=True,
    )
    builder.add_field(
        "author",
        "object",
        properties={
            "name": {"type": "string", "required": True},
            "age": {"type": "integer"},
            "role": {"type": "string", "enum": ["editor", "writer"]},
            "address": {
                "type": "object",
                "properties": {
                    "city": {"type": "string", "required": True},
                    "zip": {"type": "string"},
                },
            },
        },
    )
    builder.add_field(
        "activities",
        "array",
        items={
            "type": "object",
            "properties": {
                "title": {"type": "string", "required": True},
                "impact": {"type": "integer", "required": True},
                "kind": {"type": "string", "enum": ["talk", "post"]},
            },
        },
    )
    return builder.build()
