"""Tests for the vschema CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from vschema.cli import main

SCHEMA_YAML = """\
name: article_extraction
version: 2
fields:
  - name: title
    type: string
    required: true
  - name: priority
    type: integer
    enum: [1, 2, 3]
  - name: summary
    type: text
    versions: 2
  - name: legacy
    type: string
    versions: "1...2"
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def schema_file(tmp_path: Path) -> Path:
    path = tmp_path / "article.yaml"
    path.write_text(SCHEMA_YAML)
    return path


def _record(tmp_path: Path, data) -> Path:
    path = tmp_path / "record.json"
    path.write_text(json.dumps(data))
    return path


class TestSchemaCommand:
    def test_prints_wire_schema(self, runner, schema_file):
        result = runner.invoke(main, ["schema", str(schema_file)])
        assert result.exit_code == 0, result.output
        wire = json.loads(result.output)
        assert list(wire["parameters"]["properties"]) == ["title", "priority", "summary"]
        assert wire["parameters"]["required"] == ["title"]

    def test_version_override(self, runner, schema_file):
        result = runner.invoke(main, ["schema", str(schema_file), "--version", "1"])
        assert result.exit_code == 0, result.output
        props = json.loads(result.output)["parameters"]["properties"]
        assert list(props) == ["title", "priority", "legacy"]

    def test_invalid_schema_exits_2(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("name: bad name\n")
        result = runner.invoke(main, ["schema", str(bad)])
        assert result.exit_code == 2
        assert "Invalid schema name" in result.output

    def test_malformed_document_exits_2(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("name: ok\ncolour: blue\n")
        result = runner.invoke(main, ["schema", str(bad)])
        assert result.exit_code == 2
        assert "Error:" in result.output


class TestValidateCommand:
    def test_valid_record(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"title": "T", "summary": "S", "version": 2})
        result = runner.invoke(main, ["validate", str(schema_file), str(record)])
        assert result.exit_code == 0, result.output
        assert "valid (version 2, 3 checked, 1 skipped)" in result.output

    def test_first_error(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"priority": 4})
        result = runner.invoke(main, ["validate", str(schema_file), str(record)])
        assert result.exit_code == 1
        assert "title: Required field 'title' is missing" in result.output
        assert "priority" not in result.output

    def test_all_errors(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"priority": 4})
        result = runner.invoke(
            main, ["validate", str(schema_file), str(record), "--all-errors"]
        )
        assert result.exit_code == 1
        assert "title:" in result.output
        assert "priority:" in result.output

    def test_non_object_record(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, ["not", "an", "object"])
        result = runner.invoke(main, ["validate", str(schema_file), str(record)])
        assert result.exit_code == 2

    def test_malformed_record_version(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"title": "T", "version": "abc"})
        result = runner.invoke(main, ["validate", str(schema_file), str(record)])
        assert result.exit_code == 2
        assert "Error:" in result.output
        assert "stored record versions" in result.output


class TestAccessCommand:
    def test_reads_value(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"legacy": "old", "version": 1})
        result = runner.invoke(main, ["access", str(schema_file), str(record), "legacy"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == "old"

    def test_denied(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"title": "T", "version": 1})
        result = runner.invoke(main, ["access", str(schema_file), str(record), "summary"])
        assert result.exit_code == 1
        assert "introduced in version 2" in result.output

    def test_unknown_field(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {})
        result = runner.invoke(main, ["access", str(schema_file), str(record), "nope"])
        assert result.exit_code == 1
        assert "not defined" in result.output

    def test_malformed_record_version(self, runner, schema_file, tmp_path):
        record = _record(tmp_path, {"legacy": "old", "version": "abc"})
        result = runner.invoke(main, ["access", str(schema_file), str(record), "legacy"])
        assert result.exit_code == 2
        assert "Error:" in result.output
        assert "stored record versions" in result.output
