"""
Version range algebra for field lifecycles.

A field carries exactly one version range describing the schema versions in
which it exists.  Four shapes are supported, all frozen Pydantic v2 models
sharing the same small interface (``contains``, ``describe``,
``lower_bound``, ``last_version``):

- ``FromVersion(version=2)``:        version 2 and every later version.
- ``UnboundedRange(start=2)``:       same membership, declared as ``"2.."``.
- ``ClosedRange(start=1, end=3)``:   1 to 3 inclusive; ``exclusive=True``
  drops the upper bound (``"1...3"`` covers 1 and 2).
- ``DiscreteVersions(versions={1, 3})``: only the listed versions.

A bare integer always means "from that version onward", never "only that
version".

Usage::

    from vschema.versions import parse_versions

    rng = parse_versions("1...3")
    rng.contains(2)   # True
    rng.describe()    # "1 to 3 (exclusive)"
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from vschema.errors import InvalidVersionError

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^\s*(\d+)\s*(\.\.\.?)\s*(\d*)\s*$")


class BaseVersionRange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    def contains(self, version: int) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    @property
    def lower_bound(self) -> int:
        raise NotImplementedError

    @property
    def last_version(self) -> Optional[int]:
        """Highest version contained, or ``None`` when the range is endless."""
        raise NotImplementedError

    @property
    def is_endless(self) -> bool:
        return self.last_version is None

    def __contains__(self, version: object) -> bool:
        return isinstance(version, int) and self.contains(version)


class FromVersion(BaseVersionRange):
    """Valid for ``version`` and every later version."""

    kind: Literal["from"] = "from"
    version: int = Field(1, ge=1)

    def contains(self, version: int) -> bool:
        return version >= self.version

    def describe(self) -> str:
        return f"{self.version} and above"

    @property
    def lower_bound(self) -> int:
        return self.version

    @property
    def last_version(self) -> Optional[int]:
        return None


class UnboundedRange(BaseVersionRange):
    """Endless range (``"a.."``); membership identical to ``FromVersion``."""

    kind: Literal["unbounded"] = "unbounded"
    start: int = Field(..., ge=1)

    def contains(self, version: int) -> bool:
        return version >= self.start

    def describe(self) -> str:
        return f"{self.start} and above"

    @property
    def lower_bound(self) -> int:
        return self.start

    @property
    def last_version(self) -> Optional[int]:
        return None


class ClosedRange(BaseVersionRange):
    """Bounded range, inclusive of ``end`` unless ``exclusive`` is set."""

    kind: Literal["closed"] = "closed"
    start: int = Field(..., ge=1)
    end: int = Field(..., ge=1)
    exclusive: bool = False

    @model_validator(mode="after")
    def _warn_inverted(self) -> "ClosedRange":
        if self.end < self.start:
            logger.warning(
                "Version range %d..%d is inverted and matches no version",
                self.start,
                self.end,
            )
        return self

    def contains(self, version: int) -> bool:
        if version < self.start:
            return False
        if self.exclusive:
            return version < self.end
        return version <= self.end

    def describe(self) -> str:
        suffix = " (exclusive)" if self.exclusive else ""
        return f"{self.start} to {self.end}{suffix}"

    @property
    def lower_bound(self) -> int:
        return self.start

    @property
    def last_version(self) -> Optional[int]:
        return self.end - 1 if self.exclusive else self.end


class DiscreteVersions(BaseVersionRange):
    """Explicit set of versions."""

    kind: Literal["discrete"] = "discrete"
    versions: frozenset[int] = Field(..., min_length=1)

    @field_validator("versions")
    @classmethod
    def _positive(cls, v: frozenset[int]) -> frozenset[int]:
        if any(n < 1 for n in v):
            raise ValueError("versions must be >= 1")
        return v

    def contains(self, version: int) -> bool:
        return version in self.versions

    def describe(self) -> str:
        return ", ".join(str(v) for v in sorted(self.versions))

    @property
    def lower_bound(self) -> int:
        return min(self.versions)

    @property
    def last_version(self) -> Optional[int]:
        return max(self.versions)


VersionRange = Annotated[
    Union[FromVersion, UnboundedRange, ClosedRange, DiscreteVersions],
    Field(discriminator="kind"),
]

DEFAULT_RANGE = FromVersion(version=1)


# ---------------------------------------------------------------------------
# Coercion from declaration forms
# ---------------------------------------------------------------------------


def parse_versions(value: Any) -> BaseVersionRange:
    """Coerce a version declaration into a version range model.

    Accepted forms:
        - ``None`` → ``DEFAULT_RANGE`` (version 1 onward)
        - an existing range model → returned unchanged
        - ``int`` → ``FromVersion`` (from that version onward)
        - ``range(a, b)`` → ``ClosedRange(a, b, exclusive=True)``
        - list / tuple / set of ints → ``DiscreteVersions``
        - ``"a..b"`` / ``"a...b"`` / ``"a.."`` / ``"a"``
        - mapping ``{"from": a, "to": b, "exclusive": bool}``; without
          ``to`` the range is endless.  A mapping carrying ``kind`` is
          validated as a serialized range model.

    Raises:
        InvalidVersionError: If the declaration cannot be interpreted.
    """
    if value is None:
        return DEFAULT_RANGE
    if isinstance(value, BaseVersionRange):
        return value

    try:
        if isinstance(value, bool):
            raise InvalidVersionError(value, "booleans are not versions")
        if isinstance(value, int):
            return FromVersion(version=value)
        if isinstance(value, range):
            if value.step != 1:
                raise InvalidVersionError(value, "ranges must have step 1")
            return ClosedRange(start=value.start, end=value.stop, exclusive=True)
        if isinstance(value, (list, tuple, set, frozenset)):
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
                raise InvalidVersionError(value, "version lists must contain integers")
            return DiscreteVersions(versions=frozenset(value))
        if isinstance(value, str):
            return _parse_range_string(value)
        if isinstance(value, dict):
            return _parse_range_mapping(value)
    except ValidationError as exc:
        raise InvalidVersionError(value, str(exc.errors()[0]["msg"])) from exc

    raise InvalidVersionError(value, f"unsupported type {type(value).__name__}")


def _parse_range_string(text: str) -> BaseVersionRange:
    stripped = text.strip()
    if stripped.isdigit():
        return FromVersion(version=int(stripped))
    match = _RANGE_RE.match(stripped)
    if not match:
        raise InvalidVersionError(text, "expected 'N', 'a..b', 'a...b' or 'a..'")
    start, dots, end = match.groups()
    if not end:
        return UnboundedRange(start=int(start))
    return ClosedRange(start=int(start), end=int(end), exclusive=dots == "...")


def _parse_range_mapping(data: dict[str, Any]) -> BaseVersionRange:
    if "kind" in data:
        kinds = {
            "from": FromVersion,
            "unbounded": UnboundedRange,
            "closed": ClosedRange,
            "discrete": DiscreteVersions,
        }
        model = kinds.get(data["kind"])
        if model is None:
            raise InvalidVersionError(data, f"unknown range kind {data['kind']!r}")
        return model.model_validate(data)

    unknown = set(data) - {"from", "to", "exclusive"}
    if unknown or "from" not in data:
        raise InvalidVersionError(data, "expected keys 'from', 'to', 'exclusive'")
    if data.get("to") is None:
        return UnboundedRange(start=data["from"])
    return ClosedRange(
        start=data["from"],
        end=data["to"],
        exclusive=bool(data.get("exclusive", False)),
    )


def coerce_record_version(value: Any, default: int) -> int:
    """Interpret the version stored on a record.

    ``None`` means the record predates versioning and gets ``default``.
    Digit strings are accepted since records often round-trip through JSON
    or form data.

    Raises:
        InvalidVersionError: If ``value`` is not a version number >= 1.
    """
    if value is None:
        return default
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidVersionError(value, "stored record versions are integers >= 1")
    return value
