"""Tests for VersionedRecord."""

from __future__ import annotations

import logging

import pytest

from vschema.config import VSchemaConfig
from vschema.errors import (
    InvalidVersionError,
    MissingFieldError,
    RemovedFieldError,
    RequiredFieldError,
    TypeMismatchError,
    UnknownFieldError,
    VersionRangeError,
)
from vschema.model import SchemaBuilder
from vschema.record import VersionedRecord


class Article:
    """Stand-in for a persisted model owning the record mapping."""

    def __init__(self, extracted_data=None):
        self.extracted_data = extracted_data


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestGet:
    def test_reads_field_of_record_version(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "Hi", "version": 2}, config)
        assert record.get("title") == "Hi"
        assert record["title"] == "Hi"

    def test_absent_value_reads_none(self, article_schema, config):
        record = VersionedRecord(article_schema, {"version": 3}, config)
        assert record.get("summary") is None

    def test_removed_field_readable_on_old_record(self, article_schema, config):
        record = VersionedRecord(article_schema, {"legacy": "x", "version": 2}, config)
        assert record.get("legacy") == "x"

    def test_removed_field_denied_on_current_record(self, article_schema, config):
        record = VersionedRecord(article_schema, {"legacy": "x", "version": 3}, config)
        with pytest.raises(RemovedFieldError) as exc_info:
            record.get("legacy")
        assert exc_info.value.removed_in_version == 3

    def test_field_introduced_after_record(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "Old"}, config)
        with pytest.raises(MissingFieldError) as exc_info:
            record.get("summary")
        assert exc_info.value.record_version == 1
        assert exc_info.value.introduced_in == 2

    def test_discrete_gap(self, config):
        builder = SchemaBuilder().set_version(3)
        builder.add_field("flag", "boolean", versions=[1, 3])
        record = VersionedRecord(builder.build(), {"flag": True, "version": 2}, config)
        with pytest.raises(VersionRangeError):
            record.get("flag")

    def test_unknown_field(self, article_schema, config):
        record = VersionedRecord(article_schema, {}, config)
        with pytest.raises(UnknownFieldError, match="not defined"):
            record.get("nope")

    def test_deprecated_field_logs_warning(self, config, caplog):
        builder = SchemaBuilder().set_version(2)
        builder.add_field("old", "string", versions="1..2")
        record = VersionedRecord(builder.build(), {"old": "v", "version": 2}, config)
        with caplog.at_level(logging.WARNING, logger="vschema.record"):
            assert record.get("old") == "v"
        assert "will be removed in version 3" in caplog.text


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class TestSet:
    def test_set_writes_into_mapping(self, article_schema, config):
        data = {"version": 1}
        record = VersionedRecord(article_schema, data, config)
        record.set("summary", "new")
        assert data["summary"] == "new"

    def test_setitem(self, article_schema, config):
        record = VersionedRecord(article_schema, {}, config)
        record["title"] = "T"
        assert record.data["title"] == "T"

    def test_cannot_write_removed_field(self, article_schema, config):
        record = VersionedRecord(article_schema, {"version": 1}, config)
        with pytest.raises(RemovedFieldError):
            record.set("legacy", "x")

    def test_cannot_write_unknown_field(self, article_schema, config):
        with pytest.raises(UnknownFieldError):
            VersionedRecord(article_schema, {}, config).set("nope", 1)

    def test_round_trip(self, article_schema, config):
        record = VersionedRecord(article_schema, {"version": 3}, config)
        for name, value in [("title", "T"), ("summary", "S"), ("sentiment", 0.4)]:
            record.set(name, value)
            assert record.get(name) == value


# ---------------------------------------------------------------------------
# Binding and metadata
# ---------------------------------------------------------------------------


class TestBind:
    def test_bind_uses_container_attribute(self, article_schema, config):
        article = Article({"title": "Bound", "version": 2})
        record = VersionedRecord.bind(article, article_schema, config)
        assert record.get("title") == "Bound"
        record.set("title", "Changed")
        assert article.extracted_data["title"] == "Changed"

    def test_bind_creates_missing_container(self, article_schema, config):
        article = Article()
        record = VersionedRecord.bind(article, article_schema, config)
        assert article.extracted_data == {}
        assert record.data is article.extracted_data

    def test_bind_custom_attribute(self, article_schema):
        owner = type("Owner", (), {})()
        owner.llm_data = {"title": "X"}
        config = VSchemaConfig(emit_telemetry=False, container_attribute="llm_data")
        assert VersionedRecord.bind(owner, article_schema, config).get("title") == "X"


class TestMetadata:
    def test_stored_version_defaults(self, article_schema, config):
        assert VersionedRecord(article_schema, {}, config).stored_version == 1
        assert VersionedRecord(article_schema, {"version": 3}, config).stored_version == 3

    def test_stored_version_coerces_digit_string(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "T", "version": "2"}, config)
        assert record.stored_version == 2
        assert record.get("title") == "T"

    def test_malformed_stored_version(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "T", "version": "x"}, config)
        with pytest.raises(InvalidVersionError):
            record.get("title")
        assert "version='x'" in repr(record)

    def test_version_compatible_with(self, article_schema, config):
        record = VersionedRecord(article_schema, {"version": 2}, config)
        assert record.version_compatible_with(2)
        assert not record.version_compatible_with(3)

    def test_to_dict_is_a_copy(self, article_schema, config):
        data = {"title": "T"}
        copy = VersionedRecord(article_schema, data, config).to_dict()
        copy["title"] = "changed"
        assert data["title"] == "T"

    def test_repr(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "T", "version": 2}, config)
        assert repr(record) == (
            "VersionedRecord(schema='article_extraction', version=2, "
            "fields=['title', 'version'])"
        )


# ---------------------------------------------------------------------------
# Validation and upgrade
# ---------------------------------------------------------------------------


class TestUpgrade:
    def test_validate_uses_stored_version(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "T", "version": 1}, config)
        outcome = record.validate()
        assert outcome.record_version == 1

    def test_validation_error_references_record(self, article_schema, config):
        record = VersionedRecord(article_schema, {"version": 1}, config)
        with pytest.raises(RequiredFieldError) as exc_info:
            record.validate()
        assert exc_info.value.record is record

    def test_validated_record_reads_back(self, article_schema, config):
        data = {"title": "T", "category": "tech", "legacy": "L", "keywords": ["a"], "version": 2}
        record = VersionedRecord(article_schema, dict(data), config)
        record.validate()
        for field in article_schema.active_fields(2):
            assert record.get(field.name) == data.get(field.name)

    def test_upgrade_unlocks_new_fields(self, article_schema, config):
        record = VersionedRecord(article_schema, {"title": "Old", "version": 1}, config)
        with pytest.raises(MissingFieldError):
            record.get("summary")

        outcome = record.upgrade(summary="New", sentiment=0.5)

        assert outcome.record_version == 3
        assert record.stored_version == 3
        assert record.get("summary") == "New"
        assert record.get("sentiment") == 0.5

    def test_upgrade_rolls_back_on_validation_failure(self, article_schema, config):
        data = {"title": "Old", "version": 1}
        record = VersionedRecord(article_schema, data, config)
        with pytest.raises(TypeMismatchError):
            record.upgrade(sentiment="positive")
        assert data == {"title": "Old", "version": 1}

    def test_upgrade_rolls_back_on_access_failure(self, article_schema, config):
        data = {"title": "Old", "version": 1}
        record = VersionedRecord(article_schema, data, config)
        with pytest.raises(RemovedFieldError):
            record.upgrade(summary="ok", legacy="gone")
        assert data == {"title": "Old", "version": 1}
