"""
recordmatch: declarative equality matchers and printers for structured records.

Declare a record type once as an ordered list of fields; the catalog builds an
equality matcher and a single-line printer for it. Nested record fields reuse
the child type's matcher and printer.

Ticket: 0091_record_matchers
"""

from .access import (
    AttributeAccessor,
    AutoAccessor,
    MappingAccessor,
    MessageAccessor,
    ModelAccessor,
    RecordAccessor,
)
from .assertions import assert_record_matches, assert_records_match
from .catalog import (
    BoundField,
    Catalog,
    CatalogFrozenError,
    CyclicDefinitionError,
    DefinitionError,
    DuplicateFieldError,
    DuplicateRecordTypeError,
    FieldKindError,
    RecordDeclaration,
    RecordType,
    UndeclaredFieldError,
    UndefinedRecordTypeError,
    declare,
)
from .config import MatchConfig, PresencePolicy
from .fields import FieldKind, FieldSpec, nested, repeated, repeated_nested, scalar
from .loader import CatalogFormatError, load_catalog
from .matchers import FieldMismatch, MatchResult, MismatchReason, RecordMatcher, SequenceMatcher
from .printer import format_value

__all__ = [
    # Field declarations
    "FieldKind",
    "FieldSpec",
    "scalar",
    "repeated",
    "nested",
    "repeated_nested",
    # Catalog
    "Catalog",
    "RecordType",
    "BoundField",
    "RecordDeclaration",
    "declare",
    "load_catalog",
    # Matching and printing
    "RecordMatcher",
    "SequenceMatcher",
    "MatchResult",
    "FieldMismatch",
    "MismatchReason",
    "format_value",
    "assert_record_matches",
    "assert_records_match",
    # Accessors
    "RecordAccessor",
    "ModelAccessor",
    "MessageAccessor",
    "MappingAccessor",
    "AttributeAccessor",
    "AutoAccessor",
    # Configuration
    "MatchConfig",
    "PresencePolicy",
    # Errors
    "DefinitionError",
    "DuplicateRecordTypeError",
    "DuplicateFieldError",
    "UndefinedRecordTypeError",
    "UndeclaredFieldError",
    "FieldKindError",
    "CyclicDefinitionError",
    "CatalogFrozenError",
    "CatalogFormatError",
]
