"""
Record assertion functions for pytest tests.

Ticket: 0091_record_matchers
"""

from collections.abc import Iterable
from typing import Any

from .catalog import RecordType
from .matchers import MatchResult


def _fail(result: MatchResult, limit: int, context: str | None) -> None:
    lines = result.describe(limit)
    if context:
        lines.insert(0, context)
    raise AssertionError("\n".join(lines))


def assert_record_matches(
    actual: Any,
    expected: Any,
    record_type: RecordType,
    *,
    context: str | None = None,
    **matcher_options,
) -> None:
    """Assert that actual equals expected field by field.

    Args:
        actual: Record under test
        expected: Expected record of the same type
        record_type: Catalog entry describing both records
        context: Optional first line for the failure message
        **matcher_options: Passed to RecordType.eq (config, presence_policy)

    Raises:
        AssertionError: With both renderings and every differing field

    Example:
        >>> assert_record_matches(node, AttributionNode(uid=5, tag="alpha"),
        ...                       TELEMETRY_CATALOG["AttributionNode"])
    """
    matcher = record_type.eq(expected, **matcher_options)
    result = matcher.explain(actual)
    if not result:
        _fail(result, matcher.config.max_reported_mismatches, context)


def assert_records_match(
    actual: Iterable[Any],
    expected: Iterable[Any],
    record_type: RecordType,
    *,
    context: str | None = None,
    **matcher_options,
) -> None:
    """Assert that two record sequences match pointwise, in order.

    Raises:
        AssertionError: If lengths differ or any position differs

    Example:
        >>> assert_records_match(shell_data.atom, expected_atoms, TELEMETRY_CATALOG["Atom"])
    """
    matcher = record_type.pointwise(expected, **matcher_options)
    result = matcher.explain(list(actual))
    if not result:
        _fail(result, matcher.config.max_reported_mismatches, context)
