"""
Configuration for vschema.

Uses Pydantic BaseSettings for environment variable integration and
validation.  Configuration is an explicit value: build one and pass it to
the serializer, validator, record wrapper or loader.  There is no global
instance, so tests and tenants never share hidden state.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (VSCHEMA_*)
3. .env file
4. Default values

Example:
    from vschema.config import load_config

    config = load_config(fail_fast=False)
    validator = FieldValidator(schema, config)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHAIN_OF_THOUGHT_DESCRIPTION = (
    "Explain your thought process step by step before determining the final values."
)


class VSchemaConfig(BaseSettings):
    """
    Settings shared by the schema consumers.

    Example:
        export VSCHEMA_CONTAINER_ATTRIBUTE=llm_data
        export VSCHEMA_FAIL_FAST=false
    """

    model_config = SettingsConfigDict(
        env_prefix="VSCHEMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Record storage
    container_attribute: str = Field(
        default="extracted_data",
        min_length=1,
        description="Owner attribute holding the record mapping",
    )
    version_key: str = Field(
        default="version",
        min_length=1,
        description="Reserved key in the record mapping storing its version",
    )
    default_record_version: int = Field(
        default=1,
        ge=1,
        description="Version assumed for records without a stored version",
    )

    # Validation
    fail_fast: bool = Field(
        default=True,
        description="Raise on the first violation instead of collecting all",
    )

    # Serialization
    chain_of_thought_description: str = Field(
        default=DEFAULT_CHAIN_OF_THOUGHT_DESCRIPTION,
        description="Description of the synthetic chain_of_thought property",
    )

    # Observability
    emit_telemetry: bool = Field(
        default=True,
        description="Add OTel span events for validation and access decisions",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level used by the CLI",
    )


def load_config(**overrides) -> VSchemaConfig:
    """Build a fresh configuration from the environment plus ``overrides``."""
    return VSchemaConfig(**overrides)
