"""
vschema CLI - inspect schemas and check records from the command line.

Commands:
    vschema schema     Print the wire schema for a YAML schema file
    vschema validate   Validate a JSON record against a schema
    vschema access     Read one field of a record through the version gate
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
import yaml
from pydantic import ValidationError

from vschema.config import load_config
from vschema.errors import (
    FieldAccessError,
    InvalidVersionError,
    LLMValidationError,
    SchemaBuildError,
    ValidationFailedError,
)
from vschema.loader import SchemaLoader
from vschema.model import SchemaModel
from vschema.record import VersionedRecord
from vschema.serializer import SchemaSerializer
from vschema.validator import FieldValidator


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(2)


def _load_schema(path: str, version: Optional[int] = None) -> SchemaModel:
    try:
        schema = SchemaLoader().load(Path(path))
        if version is not None:
            schema = schema.with_version(version)
    except (SchemaBuildError, ValidationError, TypeError, yaml.YAMLError) as exc:
        _fail(f"{path}: {exc}")
    return schema


def _load_record(path: str) -> dict:
    try:
        with open(path) as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        _fail(f"{path}: {exc}")
    if not isinstance(data, dict):
        _fail(f"record in {path} must be a JSON object")
    return data


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Logging level (defaults to VSCHEMA_LOG_LEVEL or info)",
)
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]):
    """Versioned extraction schemas."""
    config = load_config()
    level = (log_level or config.log_level).upper()
    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = config


@main.command("schema")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--version", "-v", "version", type=int, help="Override the current version")
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent")
@click.pass_obj
def schema_cmd(config, schema_file: str, version: Optional[int], indent: int):
    """Print the wire schema for SCHEMA_FILE.

    Example:
        vschema schema article.schema.yaml --version 2
    """
    schema = _load_schema(schema_file, version)
    click.echo(SchemaSerializer(schema, config).to_json(indent=indent))


@main.command("validate")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("record_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--all-errors", is_flag=True, help="Report every failing field")
@click.pass_obj
def validate_cmd(config, schema_file: str, record_file: str, all_errors: bool):
    """Validate RECORD_FILE (JSON) against SCHEMA_FILE."""
    schema = _load_schema(schema_file)
    data = _load_record(record_file)
    if all_errors:
        config = config.model_copy(update={"fail_fast": False})

    try:
        outcome = FieldValidator(schema, config).validate(data)
    except ValidationFailedError as exc:
        for error in exc.errors:
            click.echo(f"{error.field_name}: {error}", err=True)
        sys.exit(1)
    except LLMValidationError as exc:
        click.echo(f"{exc.field_name}: {exc}", err=True)
        sys.exit(1)
    except InvalidVersionError as exc:
        _fail(f"{record_file}: {exc}")

    click.echo(
        f"valid (version {outcome.record_version}, "
        f"{len(outcome.checked_fields)} checked, {len(outcome.skipped_fields)} skipped)"
    )


@main.command("access")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("record_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("field_name")
@click.pass_obj
def access_cmd(config, schema_file: str, record_file: str, field_name: str):
    """Read FIELD_NAME from RECORD_FILE through the version gate."""
    schema = _load_schema(schema_file)
    record = VersionedRecord(schema, _load_record(record_file), config)
    try:
        value = record.get(field_name)
    except FieldAccessError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except InvalidVersionError as exc:
        _fail(f"{record_file}: {exc}")
    click.echo(json.dumps(value))


if __name__ == "__main__":
    main()
