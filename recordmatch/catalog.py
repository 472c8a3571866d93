"""
Record type catalog

The catalog is the explicit table from record type name to RecordType. A
RecordType owns the two artifacts built from its field list: a comparator
(used by the matchers returned from eq()/pointwise()) and a printer.

Children are bound by object reference when a type is defined, so a child must
be defined before any parent that nests it. define_all() accepts declarations
in any order and defines them in dependency order. After freeze() the catalog
rejects new definitions.

    catalog = Catalog()
    catalog.define("AttributionNode", scalar("uid"), scalar("tag"))
    catalog.define("Atom", repeated_nested("attribution_node", "AttributionNode"))
    catalog.freeze()

Ticket: 0091_record_matchers
"""

import logging
import types
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from typing import Any, Callable, Union, get_args, get_origin

from pydantic import BaseModel

from .access import AutoAccessor, MessageAccessor, ModelAccessor, RecordAccessor
from .config import MatchConfig, PresencePolicy
from .fields import FieldKind, FieldSpec
from .matchers import RecordComparator, RecordMatcher, SequenceMatcher
from .printer import RecordPrinter, Sink

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class DefinitionError(ValueError):
    """A record type declaration is invalid. Raised when the type is defined."""


class DuplicateRecordTypeError(DefinitionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Record type '{name}' is already defined")


class DuplicateFieldError(DefinitionError):
    def __init__(self, record_name: str, field_name: str):
        self.record_name = record_name
        self.field_name = field_name
        super().__init__(f"Record type '{record_name}' declares field '{field_name}' twice")


class UndefinedRecordTypeError(DefinitionError):
    def __init__(self, name: str, referenced_by: str | None = None):
        self.name = name
        self.referenced_by = referenced_by
        where = f" (referenced by '{referenced_by}')" if referenced_by else ""
        super().__init__(
            f"Record type '{name}' is not defined{where}. "
            f"Child types must be defined before the types that nest them."
        )


class UndeclaredFieldError(DefinitionError):
    def __init__(self, record_name: str, field_name: str, model: type):
        self.record_name = record_name
        self.field_name = field_name
        self.model = model
        super().__init__(
            f"Record type '{record_name}' declares field '{field_name}', "
            f"which {model.__name__} does not have"
        )


class FieldKindError(DefinitionError):
    def __init__(self, record_name: str, field_name: str, detail: str):
        self.record_name = record_name
        self.field_name = field_name
        super().__init__(f"Record type '{record_name}' field '{field_name}': {detail}")


class CyclicDefinitionError(DefinitionError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(f"Record types nest each other in a cycle: {' -> '.join(self.cycle)}")


class CatalogFrozenError(DefinitionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot define '{name}': the catalog is frozen")


# ---------------------------------------------------------------------------
# Declarations and bound types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordDeclaration:
    """A record type's field list before it is bound into a catalog."""

    name: str
    fields: tuple[FieldSpec, ...]
    model: type | None = None
    accessor: RecordAccessor | None = None

    @property
    def dependencies(self) -> list[str]:
        """Names of the record types this declaration nests, in field order."""
        names = []
        for spec in self.fields:
            child = spec.child_name
            if child is not None and child not in names:
                names.append(child)
        return names


def declare(
    name: str,
    *fields: FieldSpec,
    model: type | None = None,
    accessor: RecordAccessor | None = None,
) -> RecordDeclaration:
    return RecordDeclaration(name, tuple(fields), model, accessor)


@dataclass(frozen=True)
class BoundField:
    """A FieldSpec whose child type has been resolved to a RecordType.

    default is the value an unset scalar reads as under the value policy
    ("" for str, 0 for int, the first member of an enum). It is None when the
    type is unknown, e.g. records declared without a model.
    """

    name: str
    kind: FieldKind
    child: "RecordType | None" = None
    default: Any = None


class RecordType:
    """A defined record type with its generated comparator and printer."""

    def __init__(
        self,
        name: str,
        fields: tuple[BoundField, ...],
        accessor: RecordAccessor,
        model: type | None,
        config: MatchConfig,
    ):
        self._name = name
        self._fields = fields
        self._fields_by_name = {f.name: f for f in fields}
        self._accessor = accessor
        self._model = model
        self._config = config
        self._comparator = RecordComparator(self)
        self._printer = RecordPrinter(self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> tuple[BoundField, ...]:
        return self._fields

    @property
    def accessor(self) -> RecordAccessor:
        return self._accessor

    @property
    def model(self) -> type | None:
        return self._model

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def comparator(self) -> RecordComparator:
        return self._comparator

    def field(self, name: str) -> BoundField:
        return self._fields_by_name[name]

    def _resolve_config(
        self,
        config: MatchConfig | None,
        presence_policy: "PresencePolicy | str | None",
    ) -> MatchConfig:
        return (config or self._config).with_overrides(presence_policy=presence_policy)

    def eq(
        self,
        expected: Any,
        *,
        config: MatchConfig | None = None,
        presence_policy: "PresencePolicy | str | None" = None,
    ) -> RecordMatcher:
        """Matcher accepting records equal to expected."""
        return RecordMatcher(self, expected, self._resolve_config(config, presence_policy))

    def pointwise(
        self,
        expected: Iterable[Any],
        *,
        config: MatchConfig | None = None,
        presence_policy: "PresencePolicy | str | None" = None,
    ) -> SequenceMatcher:
        """Matcher accepting sequences whose i-th record equals expected[i]."""
        return SequenceMatcher(
            self, list(expected), self._resolve_config(config, presence_policy)
        )

    def print_to(self, record: Any, sink: Sink) -> None:
        self._printer.print_to(record, sink)

    def render(self, record: Any) -> str:
        return self._printer.render(record)

    def render_sequence(self, records: Iterable[Any]) -> str:
        rendered = ["(none)" if r is None else self.render(r) for r in records]
        if not rendered:
            return "{}"
        return "{ " + ", ".join(rendered) + " }"

    def __repr__(self) -> str:
        return f"RecordType({self._name!r}, fields={[f.name for f in self._fields]})"


# ---------------------------------------------------------------------------
# Model checks
# ---------------------------------------------------------------------------


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _is_list_annotation(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return annotation in (list, tuple) or origin in (list, tuple, Sequence)


def _is_model_class(obj: Any) -> bool:
    return isinstance(obj, type) and issubclass(obj, BaseModel)


def _check_model_fields(
    record_name: str,
    model: type[BaseModel],
    fields: tuple[BoundField, ...],
) -> None:
    """Check the declared fields against a pydantic model's annotations."""
    model_fields = model.model_fields
    for field in fields:
        info = model_fields.get(field.name)
        if info is None:
            raise UndeclaredFieldError(record_name, field.name, model)

        annotation = _unwrap_optional(info.annotation)
        is_list = _is_list_annotation(annotation)
        if field.kind.is_repeated and not is_list:
            raise FieldKindError(
                record_name, field.name, f"declared {field.kind.value} but {annotation!r} is not a list"
            )
        if not field.kind.is_repeated and is_list:
            raise FieldKindError(
                record_name, field.name, f"declared {field.kind.value} but {annotation!r} is a list"
            )

        element = annotation
        if is_list:
            args = get_args(annotation)
            element = _unwrap_optional(args[0]) if args else Any

        if field.kind.is_nested:
            child_model = field.child.model
            if element is not Any and not _is_model_class(element):
                raise FieldKindError(
                    record_name, field.name, f"declared {field.kind.value} but {element!r} is not a model"
                )
            if child_model is not None and _is_model_class(element) and element is not child_model:
                raise FieldKindError(
                    record_name,
                    field.name,
                    f"nests {field.child.name} ({child_model.__name__}) "
                    f"but the model field holds {element.__name__}",
                )
        elif _is_model_class(element):
            raise FieldKindError(
                record_name,
                field.name,
                f"declared {field.kind.value} but {element.__name__} is a model; "
                f"use nested() or repeated_nested()",
            )


_ZERO_VALUE_TYPES = (bool, int, float, str, bytes)


def _type_default(annotation: Any) -> Any:
    """Zero value a getter returns for an unset field of this type."""
    annotation = _unwrap_optional(annotation)
    if not isinstance(annotation, type):
        return None
    if issubclass(annotation, Enum):
        members = list(annotation)
        return members[0] if members else None
    if issubclass(annotation, _ZERO_VALUE_TYPES):
        return annotation()
    return None


def _with_model_defaults(model: type[BaseModel], fields: tuple[BoundField, ...]) -> tuple[BoundField, ...]:
    return tuple(
        field if field.kind is not FieldKind.SCALAR
        else replace(field, default=_type_default(model.model_fields[field.name].annotation))
        for field in fields
    )


def _check_message_fields(record_name: str, model: type, fields: tuple[BoundField, ...]) -> None:
    """Check the declared field names against a protobuf message descriptor."""
    known = model.DESCRIPTOR.fields_by_name
    for field in fields:
        if field.name not in known:
            raise UndeclaredFieldError(record_name, field.name, model)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class Catalog:
    """Explicit table of record types, built once and then frozen."""

    def __init__(self, config: MatchConfig | None = None):
        self._config = config or MatchConfig()
        self._types: dict[str, RecordType] = {}
        self._frozen = False

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Catalog":
        self._frozen = True
        logger.debug("Catalog frozen with %d record type(s)", len(self._types))
        return self

    # -- definition ---------------------------------------------------------

    def define(
        self,
        name: str,
        *fields: FieldSpec,
        model: type | None = None,
        accessor: RecordAccessor | None = None,
    ) -> RecordType:
        """Define a record type; every nested child must already be defined."""
        return self.define_declaration(declare(name, *fields, model=model, accessor=accessor))

    def define_declaration(self, declaration: RecordDeclaration) -> RecordType:
        if self._frozen:
            raise CatalogFrozenError(declaration.name)
        record_type = self._build(declaration, self._types)
        self._add(record_type)
        return record_type

    def _add(self, record_type: RecordType) -> None:
        self._types[record_type.name] = record_type
        logger.debug("Defined record type %s with %d field(s)", record_type.name, len(record_type.fields))

    def _build(self, declaration: RecordDeclaration, types: dict[str, RecordType]) -> RecordType:
        """Bind and check a declaration against types without registering it."""
        name = declaration.name
        if name in types:
            raise DuplicateRecordTypeError(name)

        bound = tuple(self._bind_field(name, spec, types) for spec in declaration.fields)
        seen: set[str] = set()
        for field in bound:
            if field.name in seen:
                raise DuplicateFieldError(name, field.name)
            seen.add(field.name)

        model = declaration.model
        accessor = declaration.accessor
        if model is not None and _is_model_class(model):
            _check_model_fields(name, model, bound)
            bound = _with_model_defaults(model, bound)
            accessor = accessor or ModelAccessor()
        elif model is not None and hasattr(model, "DESCRIPTOR"):
            _check_message_fields(name, model, bound)
            accessor = accessor or MessageAccessor()
        accessor = accessor or AutoAccessor()

        return RecordType(name, bound, accessor, model, self._config)

    def _bind_field(self, record_name: str, spec: FieldSpec, types: dict[str, RecordType]) -> BoundField:
        if not spec.kind.is_nested:
            if spec.child is not None:
                raise FieldKindError(
                    record_name, spec.name, f"{spec.kind.value} field cannot name a child type"
                )
            return BoundField(spec.name, spec.kind)

        if spec.child is None:
            raise FieldKindError(record_name, spec.name, f"{spec.kind.value} field needs a child type")

        child_name = spec.child_name
        child = types.get(child_name)
        if child is None:
            raise UndefinedRecordTypeError(child_name, referenced_by=record_name)
        if isinstance(spec.child, RecordType) and spec.child is not child:
            raise FieldKindError(
                record_name, spec.name, f"child type '{child_name}' belongs to another catalog"
            )
        return BoundField(spec.name, spec.kind, child)

    def define_all(self, declarations: Iterable[RecordDeclaration]) -> list[RecordType]:
        """Define declarations in dependency order, whatever order they are given in.

        Either every declaration is defined or, if one fails, none is.
        """
        pending = {}
        for declaration in declarations:
            if declaration.name in pending:
                raise DuplicateRecordTypeError(declaration.name)
            pending[declaration.name] = declaration
        if self._frozen and pending:
            raise CatalogFrozenError(next(iter(pending)))

        sorter = TopologicalSorter()
        for name, declaration in pending.items():
            deps = []
            for dep in declaration.dependencies:
                if dep in pending:
                    deps.append(dep)
                elif dep not in self._types:
                    raise UndefinedRecordTypeError(dep, referenced_by=name)
            sorter.add(name, *deps)

        try:
            order = list(sorter.static_order())
        except CycleError as exc:
            raise CyclicDefinitionError(exc.args[1]) from None

        staged = dict(self._types)
        built = []
        for name in order:
            record_type = self._build(pending[name], staged)
            staged[name] = record_type
            built.append(record_type)

        for record_type in built:
            self._add(record_type)
        return built

    # -- lookup -------------------------------------------------------------

    def __getitem__(self, name: str) -> RecordType:
        try:
            return self._types[name]
        except KeyError:
            raise KeyError(f"Unknown record type: '{name}'. Defined: {sorted(self._types)}") from None

    def get(self, name: str) -> RecordType | None:
        return self._types.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    @property
    def definition_order(self) -> list[str]:
        return list(self._types)

    def entry(self, name: str) -> tuple[Callable[..., RecordMatcher], Callable[[Any, Sink], None]]:
        """The (matcher factory, printer) pair generated for a record type."""
        record_type = self[name]
        return record_type.eq, record_type.print_to

    def eq(self, name: str, expected: Any, **kwargs) -> RecordMatcher:
        return self[name].eq(expected, **kwargs)

    def pointwise(self, name: str, expected: Iterable[Any], **kwargs) -> SequenceMatcher:
        return self[name].pointwise(expected, **kwargs)

    def render(self, name: str, record: Any) -> str:
        return self[name].render(record)
