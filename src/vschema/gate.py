"""
Version gate for field access on stored records.

A record keeps the version that was current when it was last validated and
saved.  Reading a field from it is allowed whenever the field's range
contains that stored version, regardless of what the schema's current
version is now.  Otherwise the access is denied with the most specific
reason:

1. ``removed``: the field's last valid version lies before the current
   schema version and the record is newer than that last version.
2. ``not_yet_introduced``: the record predates the field, and the field
   already exists at or before the current schema version.
3. ``out_of_range``: anything else (gaps in discrete sets, fields that
   only appear in future versions).

Usage::

    from vschema.gate import VersionGate

    gate = VersionGate(schema.current_version)
    decision = gate.authorize(field, record_version=2)
    if not decision.allowed:
        raise decision.to_error()
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from vschema.errors import (
    FieldAccessError,
    MissingFieldError,
    RemovedFieldError,
    VersionRangeError,
)
from vschema.fields import FieldSpec


class DenialKind(str, Enum):
    NOT_YET_INTRODUCED = "not_yet_introduced"
    REMOVED = "removed"
    OUT_OF_RANGE = "out_of_range"


class AccessDecision(BaseModel):
    """Outcome of a version-gated field access check."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: FieldSpec
    record_version: int
    current_version: int
    allowed: bool
    denial: Optional[DenialKind] = None
    # Set when access is allowed but the field has a scheduled removal.
    deprecated_until: Optional[int] = None

    def to_error(self) -> FieldAccessError:
        """Build the exception matching this denial.

        Raises:
            ValueError: If the decision allowed access.
        """
        name = self.field.name
        if self.denial is DenialKind.REMOVED:
            return RemovedFieldError(name, self.field.removed_in)
        if self.denial is DenialKind.NOT_YET_INTRODUCED:
            return MissingFieldError(name, self.record_version, self.field.introduced_in)
        if self.denial is DenialKind.OUT_OF_RANGE:
            return VersionRangeError(name, self.record_version, self.field.versions)
        raise ValueError(f"Access to '{name}' was allowed; there is no error to raise")


def authorize(field: FieldSpec, record_version: int, current_version: int) -> AccessDecision:
    """Decide whether ``field`` may be read from a record at ``record_version``."""
    versions = field.versions
    last = versions.last_version

    if versions.contains(record_version):
        deprecated_until = None
        if last is not None and versions.contains(current_version):
            deprecated_until = last + 1
        return AccessDecision(
            field=field,
            record_version=record_version,
            current_version=current_version,
            allowed=True,
            deprecated_until=deprecated_until,
        )

    if last is not None and last < current_version and record_version > last:
        denial = DenialKind.REMOVED
    elif record_version < versions.lower_bound <= current_version:
        denial = DenialKind.NOT_YET_INTRODUCED
    else:
        denial = DenialKind.OUT_OF_RANGE

    return AccessDecision(
        field=field,
        record_version=record_version,
        current_version=current_version,
        allowed=False,
        denial=denial,
    )


def is_compatible(stored_version: int, required_version: int) -> bool:
    """Non-throwing check: was the record saved at or after ``required_version``?"""
    return stored_version >= required_version


class VersionGate:
    """Applies ``authorize`` against a fixed current schema version."""

    def __init__(self, current_version: int) -> None:
        self._current_version = current_version

    @property
    def current_version(self) -> int:
        return self._current_version

    def authorize(self, field: FieldSpec, record_version: int) -> AccessDecision:
        return authorize(field, record_version, self._current_version)

    def check(self, field: FieldSpec, record_version: int) -> AccessDecision:
        """Like ``authorize`` but raises the matching ``FieldAccessError``."""
        decision = self.authorize(field, record_version)
        if not decision.allowed:
            raise decision.to_error()
        return decision
