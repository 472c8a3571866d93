"""
Field Descriptor Model

Each record type is declared as an ordered list of FieldSpec entries. The kind
of a field selects how the matcher compares it and how the printer renders it:

    SCALAR           optional value, compared with ==
    REPEATED         list of values, compared pointwise with ==
    NESTED           optional record, compared with the child type's matcher
    REPEATED_NESTED  list of records, compared pointwise with the child matcher

Example:
    >>> ATTRIBUTION = [scalar("uid"), scalar("tag")]
    >>> ATOM = [repeated_nested("attribution_node", "AttributionNode"),
    ...         repeated("repeated_int_field")]

Ticket: 0091_record_matchers
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .catalog import RecordType


class FieldKind(Enum):
    """Classification of record fields for matcher/printer composition."""

    SCALAR = "scalar"
    REPEATED = "repeated"
    NESTED = "nested"
    REPEATED_NESTED = "repeated_nested"

    @property
    def is_repeated(self) -> bool:
        return self in (FieldKind.REPEATED, FieldKind.REPEATED_NESTED)

    @property
    def is_nested(self) -> bool:
        return self in (FieldKind.NESTED, FieldKind.REPEATED_NESTED)


ChildRef = Union[str, "RecordType"]


@dataclass(frozen=True)
class FieldSpec:
    """One declared field of a record type."""

    name: str
    kind: FieldKind
    child: ChildRef | None = None  # record type name (or RecordType) for nested kinds

    @property
    def child_name(self) -> str | None:
        """Name of the child record type, whether given as a string or a RecordType."""
        if self.child is None or isinstance(self.child, str):
            return self.child
        return self.child.name


def scalar(name: str) -> FieldSpec:
    """Optional primitive field compared with ==."""
    return FieldSpec(name, FieldKind.SCALAR)


def repeated(name: str) -> FieldSpec:
    """Repeated primitive field compared element by element."""
    return FieldSpec(name, FieldKind.REPEATED)


def nested(name: str, child: ChildRef) -> FieldSpec:
    """Optional record field delegated to the child type's matcher."""
    return FieldSpec(name, FieldKind.NESTED, child)


def repeated_nested(name: str, child: ChildRef) -> FieldSpec:
    """Repeated record field delegated element by element to the child matcher."""
    return FieldSpec(name, FieldKind.REPEATED_NESTED, child)
