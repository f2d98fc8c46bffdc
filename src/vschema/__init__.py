"""
vschema - versioned extraction schemas for generated records.

Declare typed, constrained fields tagged with the versions in which they
exist, then:

- serialize the fields active in the current version into a JSON-Schema
  shaped contract for an external generator (e.g. an LLM),
- validate generated records against the fields of their own version,
- gate field reads on stored records by the version they were saved with.

Public API::

    from vschema import (
        # Declaration
        SchemaBuilder,
        SchemaModel,
        FieldSpec,
        FieldKind,
        PropertySchema,
        # Versions
        FromVersion,
        UnboundedRange,
        ClosedRange,
        DiscreteVersions,
        parse_versions,
        # Consumers
        SchemaSerializer,
        FieldValidator,
        ValidationOutcome,
        VersionGate,
        VersionedRecord,
        SchemaLoader,
        # Config
        VSchemaConfig,
        load_config,
    )

Example::

    builder = SchemaBuilder().set_name("article").set_version(2)
    builder.add_field("title", "string", required=True)
    builder.add_field("tags", "array", items={"type": "string"}, versions="2..")
    schema = builder.build()

    wire = serialize(schema)
    validate(schema, {"title": "Hello", "tags": ["a"], "version": 2})
"""

from vschema.config import VSchemaConfig, load_config
from vschema.errors import (
    ArrayConstraintError,
    DuplicateFieldError,
    EnumValidationError,
    FieldAccessError,
    InvalidFieldOptionError,
    InvalidSchemaNameError,
    InvalidVersionError,
    LLMValidationError,
    MissingFieldError,
    ObjectValidationError,
    RemovedFieldError,
    RequiredFieldError,
    SchemaBuildError,
    TypeMismatchError,
    UnknownFieldError,
    ValidationFailedError,
    VersionRangeError,
    VSchemaError,
)
from vschema.fields import FieldKind, FieldSpec, PropertySchema
from vschema.gate import AccessDecision, DenialKind, VersionGate, authorize, is_compatible
from vschema.loader import SchemaDocument, SchemaLoader
from vschema.model import CHAIN_OF_THOUGHT_FIELD, SchemaBuilder, SchemaModel
from vschema.record import VersionedRecord
from vschema.serializer import SchemaSerializer, serialize
from vschema.validator import FieldValidator, ValidationOutcome, validate
from vschema.versions import (
    DEFAULT_RANGE,
    BaseVersionRange,
    ClosedRange,
    DiscreteVersions,
    FromVersion,
    UnboundedRange,
    VersionRange,
    parse_versions,
)

__version__ = "0.1.0"

__all__ = [
    # Declaration
    "SchemaBuilder",
    "SchemaModel",
    "FieldSpec",
    "FieldKind",
    "PropertySchema",
    "CHAIN_OF_THOUGHT_FIELD",
    # Versions
    "BaseVersionRange",
    "VersionRange",
    "FromVersion",
    "UnboundedRange",
    "ClosedRange",
    "DiscreteVersions",
    "DEFAULT_RANGE",
    "parse_versions",
    # Serialization
    "SchemaSerializer",
    "serialize",
    # Validation
    "FieldValidator",
    "ValidationOutcome",
    "validate",
    # Access
    "VersionGate",
    "AccessDecision",
    "DenialKind",
    "authorize",
    "is_compatible",
    "VersionedRecord",
    # Loading
    "SchemaLoader",
    "SchemaDocument",
    # Config
    "VSchemaConfig",
    "load_config",
    # Errors
    "VSchemaError",
    "SchemaBuildError",
    "InvalidSchemaNameError",
    "DuplicateFieldError",
    "InvalidFieldOptionError",
    "InvalidVersionError",
    "LLMValidationError",
    "RequiredFieldError",
    "TypeMismatchError",
    "EnumValidationError",
    "ArrayConstraintError",
    "ObjectValidationError",
    "ValidationFailedError",
    "FieldAccessError",
    "MissingFieldError",
    "RemovedFieldError",
    "VersionRangeError",
    "UnknownFieldError",
    "__version__",
]
