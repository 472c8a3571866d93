"""
Record field accessors.

Matchers and printers never touch record instances directly. They go through a
RecordAccessor, which exposes the four capabilities a record must offer to take
part in matching:

    has(record, name)          presence of an optional field
    get(record, name)          value of a field
    count(record, name)        length of a repeated field
    at(record, name, index)    one element of a repeated field

Ticket: 0091_record_matchers
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


class RecordAccessor(ABC):
    """Capability set a record type must provide to be matched and printed."""

    @abstractmethod
    def has(self, record: Any, name: str) -> bool:
        ...

    @abstractmethod
    def get(self, record: Any, name: str) -> Any:
        ...

    def count(self, record: Any, name: str) -> int:
        values = self.get(record, name)
        return 0 if values is None else len(values)

    def at(self, record: Any, name: str, index: int) -> Any:
        return self.get(record, name)[index]

    def items(self, record: Any, name: str) -> list[Any]:
        """All elements of a repeated field, in order."""
        return [self.at(record, name, i) for i in range(self.count(record, name))]


class ModelAccessor(RecordAccessor):
    """Pydantic models: a field is present when it was explicitly set."""

    def has(self, record: BaseModel, name: str) -> bool:
        return name in record.model_fields_set and getattr(record, name) is not None

    def get(self, record: BaseModel, name: str) -> Any:
        return getattr(record, name)


class MessageAccessor(RecordAccessor):
    """Protobuf-style messages exposing HasField()."""

    def has(self, record: Any, name: str) -> bool:
        try:
            return bool(record.HasField(name))
        except ValueError:
            # proto3 implicit-presence field: present iff not the default value
            return bool(getattr(record, name))

    def get(self, record: Any, name: str) -> Any:
        return getattr(record, name)


class MappingAccessor(RecordAccessor):
    """Plain mappings, e.g. records loaded from YAML or JSON documents."""

    def has(self, record: Mapping, name: str) -> bool:
        return record.get(name) is not None

    def get(self, record: Mapping, name: str) -> Any:
        return record.get(name)


class AttributeAccessor(RecordAccessor):
    """Arbitrary objects (dataclasses, namedtuples): None means absent."""

    def has(self, record: Any, name: str) -> bool:
        return getattr(record, name, None) is not None

    def get(self, record: Any, name: str) -> Any:
        return getattr(record, name, None)


_MODEL = ModelAccessor()
_MESSAGE = MessageAccessor()
_MAPPING = MappingAccessor()
_ATTRIBUTE = AttributeAccessor()


def accessor_for(record: Any) -> RecordAccessor:
    """Pick the accessor matching the shape of a record instance."""
    if isinstance(record, BaseModel):
        return _MODEL
    if isinstance(record, Mapping):
        return _MAPPING
    if callable(getattr(record, "HasField", None)):
        return _MESSAGE
    return _ATTRIBUTE


class AutoAccessor(RecordAccessor):
    """Delegates each call to the accessor matching the instance's shape.

    Used when a record type is declared without a model class, so the same
    type can be matched against pydantic models, messages, or dicts.
    """

    def has(self, record: Any, name: str) -> bool:
        return accessor_for(record).has(record, name)

    def get(self, record: Any, name: str) -> Any:
        return accessor_for(record).get(record, name)

    def count(self, record: Any, name: str) -> int:
        return accessor_for(record).count(record, name)

    def at(self, record: Any, name: str, index: int) -> Any:
        return accessor_for(record).at(record, name, index)
