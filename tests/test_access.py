"""
Tests for access.py

Validates:
- MessageAccessor reads presence through HasField()
- Implicit-presence message fields fall back to a non-default check
- AttributeAccessor treats a missing or None attribute as absent
- accessor_for() picks the accessor from the record's shape
"""

from dataclasses import dataclass, field

import pytest

from conftest import Bar
from recordmatch import (
    AttributeAccessor,
    Catalog,
    MappingAccessor,
    MessageAccessor,
    MismatchReason,
    ModelAccessor,
    PresencePolicy,
    repeated,
    scalar,
)
from recordmatch.access import accessor_for


class FakeDescriptor:
    fields_by_name = {"uid": object(), "tag": object(), "count": object(), "ids": object()}


class FakeMessage:
    """Message with explicit presence on uid and tag, implicit presence on count."""

    DESCRIPTOR = FakeDescriptor()
    _EXPLICIT = {"uid", "tag"}

    def __init__(self, **values):
        self._set = {name for name in values if name in self._EXPLICIT}
        self.uid = values.get("uid", 0)
        self.tag = values.get("tag", "")
        self.count = values.get("count", 0)
        self.ids = list(values.get("ids", []))

    def HasField(self, name):
        if name not in self._EXPLICIT:
            raise ValueError(f'Field "{name}" does not have presence')
        return name in self._set


@dataclass
class Point:
    x: int | None = None
    labels: list[str] = field(default_factory=list)


@pytest.fixture
def message_catalog():
    catalog = Catalog()
    catalog.define(
        "Message", scalar("uid"), scalar("tag"), scalar("count"), repeated("ids"), model=FakeMessage
    )
    return catalog.freeze()


class TestMessageAccessor:

    def test_explicit_presence_uses_has_field(self):
        """A set field is present even when it holds the default value."""
        accessor = MessageAccessor()
        message = FakeMessage(uid=0)
        assert accessor.has(message, "uid")
        assert not accessor.has(message, "tag")

    def test_implicit_presence_means_non_default(self):
        """Fields without presence are present only when non-zero."""
        accessor = MessageAccessor()
        assert not accessor.has(FakeMessage(count=0), "count")
        assert accessor.has(FakeMessage(count=3), "count")

    def test_get_and_repeated_access(self):
        accessor = MessageAccessor()
        message = FakeMessage(tag="alpha", ids=[4, 5, 6])
        assert accessor.get(message, "tag") == "alpha"
        assert accessor.get(message, "uid") == 0
        assert accessor.count(message, "ids") == 3
        assert accessor.at(message, "ids", 1) == 5
        assert accessor.items(message, "ids") == [4, 5, 6]

    def test_catalog_uses_message_accessor(self, message_catalog):
        assert isinstance(message_catalog["Message"].accessor, MessageAccessor)


class TestMessageMatching:

    def test_value_policy_ignores_explicit_default(self, message_catalog):
        """An unset tag and a tag set to "" read the same under the value policy."""
        matcher = message_catalog.eq("Message", FakeMessage(uid=5))
        assert matcher.matches(FakeMessage(uid=5, tag=""))

    def test_presence_policy_reports_set_default(self, message_catalog):
        """Under the presence policy a tag set to "" differs from an unset tag."""
        matcher = message_catalog.eq("Message", FakeMessage(uid=5), presence_policy=PresencePolicy.PRESENCE)
        result = matcher.explain(FakeMessage(uid=5, tag=""))
        assert len(result.mismatches) == 1
        mismatch = result.mismatches[0]
        assert mismatch.path == "tag"
        assert mismatch.reason == MismatchReason.PRESENCE
        assert mismatch.describe() == "tag: expected absent, actual present ()"

    def test_value_difference(self, message_catalog):
        matcher = message_catalog.eq("Message", FakeMessage(uid=5, ids=[1, 2]))
        result = matcher.explain(FakeMessage(uid=5, ids=[1, 3]))
        assert [m.describe() for m in result.mismatches] == ["ids[1]: expected 2, actual 3"]

    def test_printer_skips_unset_fields(self, message_catalog):
        """Set fields print even at their default; unset and empty ones do not."""
        rendered = message_catalog["Message"].render(FakeMessage(uid=0, ids=[1, 2]))
        assert rendered == "Message: { uid: 0, ids: { 1, 2 }, }"


class TestAttributeAccessor:

    def test_none_attribute_is_absent(self):
        accessor = AttributeAccessor()
        assert not accessor.has(Point(), "x")
        assert accessor.has(Point(x=0), "x")

    def test_missing_attribute_reads_as_none(self):
        """An attribute the object lacks is absent rather than an error."""
        accessor = AttributeAccessor()
        assert accessor.get(Point(x=1), "y") is None
        assert not accessor.has(Point(x=1), "y")

    def test_repeated_attribute(self):
        accessor = AttributeAccessor()
        point = Point(labels=["a", "b"])
        assert accessor.count(point, "labels") == 2
        assert accessor.items(point, "labels") == ["a", "b"]

    def test_dataclasses_match_through_auto_accessor(self):
        """A type declared without a model matches dataclass instances."""
        catalog = Catalog()
        catalog.define("Point", scalar("x"), repeated("labels"))
        matcher = catalog.eq("Point", Point(x=1, labels=["a"]))
        assert matcher.matches(Point(x=1, labels=["a"]))
        assert [m.path for m in matcher.explain(Point(x=2, labels=["a"])).mismatches] == ["x"]


class TestAccessorFor:

    @pytest.mark.parametrize(
        "record, accessor_type",
        [
            (Bar(aa=1), ModelAccessor),
            ({"aa": 1}, MappingAccessor),
            (FakeMessage(uid=1), MessageAccessor),
            (Point(x=1), AttributeAccessor),
        ],
    )
    def test_shape_selects_accessor(self, record, accessor_type):
        assert isinstance(accessor_for(record), accessor_type)
