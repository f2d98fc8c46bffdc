"""
Version-aware record wrapper.

``VersionedRecord`` composes a ``SchemaModel`` with the mapping that stores a
record's data (owned by whatever persistence layer the caller uses).  Reads
and writes go through one generic ``get`` / ``set`` pair that consults the
schema's field table and the version gate.

Usage::

    from vschema.record import VersionedRecord

    record = VersionedRecord(schema, {"title": "Old", "version": 1})
    record.get("title")            # "Old"
    record.get("summary")          # MissingFieldError if introduced in v2

    record.upgrade(summary="New")  # stamps the current version, validates
    record.get("summary")          # "New"

Binding to an owner object's container attribute::

    record = VersionedRecord.bind(article, schema)   # uses article.extracted_data
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Optional

from vschema.config import VSchemaConfig
from vschema.errors import FieldAccessError, UnknownFieldError
from vschema.fields import FieldSpec
from vschema.gate import AccessDecision, VersionGate, is_compatible
from vschema.model import SchemaModel
from vschema.otel import emit_access_denied
from vschema.validator import FieldValidator, ValidationOutcome
from vschema.versions import coerce_record_version

logger = logging.getLogger(__name__)


class VersionedRecord:
    """Generic, version-gated accessor over a record's data mapping."""

    def __init__(
        self,
        schema: SchemaModel,
        data: Optional[MutableMapping[str, Any]] = None,
        config: Optional[VSchemaConfig] = None,
    ) -> None:
        self._schema = schema
        self._config = config or VSchemaConfig()
        self._data: MutableMapping[str, Any] = {} if data is None else data
        self._gate = VersionGate(schema.current_version)
        self._validator = FieldValidator(schema, self._config)

    @classmethod
    def bind(
        cls,
        owner: Any,
        schema: SchemaModel,
        config: Optional[VSchemaConfig] = None,
    ) -> "VersionedRecord":
        """Wrap the container attribute of ``owner`` (created if unset)."""
        config = config or VSchemaConfig()
        attribute = config.container_attribute
        data = getattr(owner, attribute, None)
        if data is None:
            data = {}
            setattr(owner, attribute, data)
        return cls(schema, data, config)

    # -- metadata ----------------------------------------------------------

    @property
    def schema(self) -> SchemaModel:
        return self._schema

    @property
    def data(self) -> MutableMapping[str, Any]:
        return self._data

    @property
    def stored_version(self) -> int:
        return coerce_record_version(
            self._data.get(self._config.version_key), self._config.default_record_version
        )

    def version_compatible_with(self, required_version: int) -> bool:
        return is_compatible(self.stored_version, required_version)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # -- field access ------------------------------------------------------

    def get(self, name: str) -> Any:
        """Read a field, enforcing the version gate.

        Raises:
            UnknownFieldError: If ``name`` is not declared in the schema.
            MissingFieldError: If the record predates the field.
            RemovedFieldError: If the field was removed before the record's version.
            VersionRangeError: For any other version mismatch.
            InvalidVersionError: If the stored version is not a version number.
        """
        spec = self._lookup(name)
        decision = self._authorize(spec, self.stored_version)
        if decision.deprecated_until is not None:
            logger.warning(
                "Field '%s' is deprecated as of version %d and will be removed in version %d",
                name,
                self._schema.current_version,
                decision.deprecated_until,
            )
        return self._data.get(name)

    def set(self, name: str, value: Any) -> None:
        """Write a field that exists in the current schema version.

        Writes are gated on the current version, not the stored one: setting
        new values is how an old record is brought up to date.
        """
        spec = self._lookup(name)
        self._authorize(spec, self._schema.current_version)
        self._data[name] = value

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    # -- lifecycle ---------------------------------------------------------

    def validate(self) -> ValidationOutcome:
        """Validate the data at the record's stored version."""
        return self._validator.validate(self._data, record=self)

    def upgrade(self, **values: Any) -> ValidationOutcome:
        """Apply ``values``, stamp the current version and validate.

        On any failure the data mapping is restored to its previous contents
        before the error propagates.
        """
        snapshot = dict(self._data)
        try:
            for name, value in values.items():
                self.set(name, value)
            self._data[self._config.version_key] = self._schema.current_version
            outcome = self._validator.validate(self._data, record=self)
        except Exception:
            self._data.clear()
            self._data.update(snapshot)
            raise
        logger.debug(
            "Upgraded record from version %s to %d",
            snapshot.get(self._config.version_key, self._config.default_record_version),
            self._schema.current_version,
        )
        return outcome

    # -- internal helpers --------------------------------------------------

    def _lookup(self, name: str) -> FieldSpec:
        spec = self._schema.get_field(name)
        if spec is None:
            raise UnknownFieldError(name)
        return spec

    def _authorize(self, spec: FieldSpec, version: int) -> AccessDecision:
        decision = self._gate.authorize(spec, version)
        if not decision.allowed:
            error: FieldAccessError = decision.to_error()
            if self._config.emit_telemetry:
                emit_access_denied(
                    self._schema.name, error, version, self._schema.current_version
                )
            raise error
        return decision

    def __repr__(self) -> str:
        return (
            f"VersionedRecord(schema={self._schema.name!r}, "
            f"version={self._data.get(self._config.version_key)!r}, "
            f"fields={sorted(self._data)!r})"
        )
