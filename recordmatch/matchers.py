"""
Predicate Composer

For each record type the catalog builds a RecordComparator: the conjunction of
one check per declared field. Nested fields delegate to the child type's own
comparator, so a parent never re-specifies child logic.

    matcher = catalog["AttributionNode"].eq(expected)
    matcher(actual)            # -> bool, stops at the first differing field
    matcher.explain(actual)    # -> MatchResult listing every differing field
    assert actual == matcher   # plain assert; the pytest plugin explains failures

A mismatch is a normal outcome and is reported, never raised.

Ticket: 0091_record_matchers
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import MatchConfig, PresencePolicy
from .printer import format_field_value, format_value

if TYPE_CHECKING:
    from .catalog import BoundField, RecordType

logger = logging.getLogger(__name__)


class MismatchReason:
    VALUE = "value"
    LENGTH = "length"
    PRESENCE = "presence"


@dataclass(frozen=True)
class FieldMismatch:
    """One field that differs between expected and actual."""

    path: str       # e.g. "atom[1].test_atom_reported.int_field"
    reason: str     # MismatchReason
    expected: str   # rendered expected side
    actual: str     # rendered actual side

    def describe(self) -> str:
        if self.reason == MismatchReason.LENGTH:
            return (
                f"{self.path}: expected {self.expected} element(s), "
                f"actual has {self.actual}"
            )
        return f"{self.path}: expected {self.expected}, actual {self.actual}"


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of one comparison.

    Fields:
      matched        -- True iff every field check passed.
      type_name      -- Record type compared (``Name[]`` for sequences).
      mismatches     -- Every differing field, in declaration order. Empty on match.
      expected_text  -- Rendering of the expected value. Empty on match.
      actual_text    -- Rendering of the actual value. Empty on match.
    """

    matched: bool
    type_name: str
    mismatches: tuple[FieldMismatch, ...] = ()
    expected_text: str = ""
    actual_text: str = ""

    def __bool__(self) -> bool:
        return self.matched

    def describe(self, limit: int | None = None) -> list[str]:
        """Human-readable explanation lines; empty when matched."""
        if self.matched:
            return []
        lines = [
            f"{self.type_name} mismatch ({len(self.mismatches)} field(s) differ)",
            f"  Expected: {self.expected_text}",
            f"  Actual:   {self.actual_text}",
        ]
        shown = self.mismatches if limit is None else self.mismatches[:limit]
        lines.extend(f"  - {m.describe()}" for m in shown)
        hidden = len(self.mismatches) - len(shown)
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")
        return lines

    def __str__(self) -> str:
        if self.matched:
            return f"{self.type_name} matched"
        return "\n".join(self.describe())


def _primitive_equal(expected: Any, actual: Any) -> bool:
    # identity first, as list/tuple comparison does (keeps NaN reflexive)
    return expected is actual or expected == actual


def _presence_text(present: bool, field: "BoundField", value: Any) -> str:
    if not present:
        return "absent"
    return f"present ({format_field_value(field, value)})"


class RecordComparator:
    """Field-by-field predicate generated for one record type.

    A record of None stands for an empty record (every field unset). That only
    happens under the value policy, when a nested field is unset on one side.
    """

    def __init__(self, record_type: "RecordType"):
        self._record_type = record_type

    def iter_mismatches(
        self,
        expected: Any,
        actual: Any,
        policy: PresencePolicy,
        prefix: str = "",
    ) -> Iterator[FieldMismatch]:
        """Yield a FieldMismatch for every differing field, lazily."""
        for field in self._record_type.fields:
            path = f"{prefix}{field.name}"
            if field.kind.is_repeated:
                yield from self._check_repeated(field, expected, actual, policy, path)
            else:
                yield from self._check_single(field, expected, actual, policy, path)

    def _has(self, record, name) -> bool:
        return record is not None and self._record_type.accessor.has(record, name)

    def _get(self, record, name) -> Any:
        return None if record is None else self._record_type.accessor.get(record, name)

    def _items(self, record, name) -> list[Any]:
        return [] if record is None else self._record_type.accessor.items(record, name)

    def _check_single(self, field, expected, actual, policy, path):
        expected_value = self._get(expected, field.name)
        actual_value = self._get(actual, field.name)

        if policy is PresencePolicy.PRESENCE:
            expected_has = self._has(expected, field.name)
            actual_has = self._has(actual, field.name)
            if expected_has != actual_has:
                yield FieldMismatch(
                    path,
                    MismatchReason.PRESENCE,
                    _presence_text(expected_has, field, expected_value),
                    _presence_text(actual_has, field, actual_value),
                )
                return
            yield from _check_value(field, expected_value, actual_value, policy, path)
            return

        # unset reads as the type's zero value, as a generated getter would
        if expected_value is None:
            expected_value = field.default
        if actual_value is None:
            actual_value = field.default
        yield from _check_value(field, expected_value, actual_value, policy, path, absent_is_empty=True)

    def _check_repeated(self, field, expected, actual, policy, path):
        expected_items = self._items(expected, field.name)
        actual_items = self._items(actual, field.name)

        if len(expected_items) != len(actual_items):
            yield FieldMismatch(
                path,
                MismatchReason.LENGTH,
                str(len(expected_items)),
                str(len(actual_items)),
            )
            return

        for i, (expected_item, actual_item) in enumerate(zip(expected_items, actual_items)):
            yield from _check_value(field, expected_item, actual_item, policy, f"{path}[{i}]")


def _check_value(field, expected, actual, policy, path, absent_is_empty=False) -> Iterator[FieldMismatch]:
    """Compare one value (a scalar, or one record) under the field's strategy."""
    if field.child is None:
        if not _primitive_equal(expected, actual):
            yield FieldMismatch(
                path,
                MismatchReason.VALUE,
                format_value(expected),
                format_value(actual),
            )
        return

    yield from _check_record(field.child, expected, actual, policy, path, absent_is_empty)


def _render_record(record_type: "RecordType", record: Any) -> str:
    return "(none)" if record is None else record_type.render(record)


def _check_record(
    record_type, expected, actual, policy, path, absent_is_empty=False
) -> Iterator[FieldMismatch]:
    """Delegate to record_type's comparator.

    A missing record matches another missing record. With absent_is_empty it
    is compared as an empty record instead; otherwise it matches nothing else.
    """
    if expected is None and actual is None:
        return
    if (expected is None or actual is None) and not absent_is_empty:
        yield FieldMismatch(
            path or "(record)",
            MismatchReason.VALUE,
            _render_record(record_type, expected),
            _render_record(record_type, actual),
        )
        return
    prefix = f"{path}." if path else ""
    yield from record_type.comparator.iter_mismatches(expected, actual, policy, prefix)


class RecordMatcher:
    """Equality matcher for one expected record, built by RecordType.eq()."""

    def __init__(self, record_type: "RecordType", expected: Any, config: MatchConfig):
        self._record_type = record_type
        self._expected = expected
        self._config = config

    @property
    def record_type(self) -> "RecordType":
        return self._record_type

    @property
    def expected(self) -> Any:
        return self._expected

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def description(self) -> str:
        """The printed expected value."""
        return self._record_type.render(self._expected)

    def _mismatches(self, actual: Any) -> Iterator[FieldMismatch]:
        return _check_record(
            self._record_type, self._expected, actual, self._config.presence_policy, ""
        )

    def matches(self, actual: Any) -> bool:
        return next(self._mismatches(actual), None) is None

    __call__ = matches

    def explain(self, actual: Any) -> MatchResult:
        mismatches = tuple(self._mismatches(actual))
        name = self._record_type.name
        if not mismatches:
            return MatchResult(matched=True, type_name=name)
        logger.debug("%s mismatch: %d field(s) differ", name, len(mismatches))
        return MatchResult(
            matched=False,
            type_name=name,
            mismatches=mismatches,
            expected_text=self.description,
            actual_text=_render_record(self._record_type, actual),
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (RecordMatcher, SequenceMatcher)):
            return NotImplemented
        return self.matches(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Eq{self._record_type.name}({self.description})"


class SequenceMatcher:
    """Pointwise matcher: element i of actual must match element i of expected."""

    def __init__(self, record_type: "RecordType", expected: Sequence[Any], config: MatchConfig):
        self._record_type = record_type
        self._expected = list(expected)
        self._config = config

    @property
    def record_type(self) -> "RecordType":
        return self._record_type

    @property
    def expected(self) -> list[Any]:
        return list(self._expected)

    @property
    def config(self) -> MatchConfig:
        return self._config

    @property
    def description(self) -> str:
        return self._record_type.render_sequence(self._expected)

    def _mismatches(self, actual: Sequence[Any]) -> Iterator[FieldMismatch]:
        actual = list(actual)
        if len(actual) != len(self._expected):
            yield FieldMismatch(
                "(sequence)", MismatchReason.LENGTH, str(len(self._expected)), str(len(actual))
            )
            return
        policy = self._config.presence_policy
        for i, (expected_item, actual_item) in enumerate(zip(self._expected, actual)):
            yield from _check_record(
                self._record_type, expected_item, actual_item, policy, f"[{i}]"
            )

    def matches(self, actual: Sequence[Any]) -> bool:
        return next(self._mismatches(actual), None) is None

    __call__ = matches

    def explain(self, actual: Sequence[Any]) -> MatchResult:
        actual = list(actual)
        mismatches = tuple(self._mismatches(actual))
        name = f"{self._record_type.name}[]"
        if not mismatches:
            return MatchResult(matched=True, type_name=name)
        logger.debug("%s mismatch: %d field(s) differ", name, len(mismatches))
        return MatchResult(
            matched=False,
            type_name=name,
            mismatches=mismatches,
            expected_text=self.description,
            actual_text=self._record_type.render_sequence(actual),
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (RecordMatcher, SequenceMatcher)):
            return NotImplemented
        if not isinstance(other, Sequence) or isinstance(other, (str, bytes)):
            return False
        return self.matches(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Pointwise(Eq{self._record_type.name}(), {self.description})"
