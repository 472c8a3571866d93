"""
Diagnostic Formatter

Renders a record as a single line listing its present fields in declaration
order:

    AttributionNode: { uid: 5, tag: alpha, }
    TrainExperimentIds: { experiment_id: { 1, 2 }, }
    Atom: { screen_state_changed: ScreenStateChanged: { state: DISPLAY_STATE_ON, }, }

Absent optional fields and empty repeated fields are omitted. Nested records
are written by the child type's own printer.

Ticket: 0091_record_matchers
"""

import io
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .catalog import BoundField, RecordType


class Sink(Protocol):
    def write(self, text: str) -> Any:
        ...


def format_value(value: Any) -> str:
    """Render one primitive value."""
    if value is None:
        return "(none)"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (bytes, bytearray)):
        return repr(bytes(value))
    return str(value)


def format_field_value(field: "BoundField", value: Any) -> str:
    """Render a field value: a primitive, a nested record, or a list of either."""
    buf = io.StringIO()
    _write_field_value(field, value, buf)
    return buf.getvalue()


def _write_element(field: "BoundField", value: Any, sink: Sink) -> None:
    if value is None:
        sink.write("(none)")
    elif field.child is not None:
        field.child.print_to(value, sink)
    else:
        sink.write(format_value(value))


def _write_sequence(field: "BoundField", values: list[Any], sink: Sink) -> None:
    if not values:
        sink.write("{}")
        return
    sink.write("{ ")
    for i, value in enumerate(values):
        if i:
            sink.write(", ")
        _write_element(field, value, sink)
    sink.write(" }")


def _write_field_value(field: "BoundField", value: Any, sink: Sink) -> None:
    if field.kind.is_repeated:
        _write_sequence(field, list(value or ()), sink)
    else:
        _write_element(field, value, sink)


class RecordPrinter:
    """Printer generated for one record type."""

    def __init__(self, record_type: "RecordType"):
        self._record_type = record_type

    def print_to(self, record: Any, sink: Sink) -> None:
        """Write the rendering of record to sink (any object with write())."""
        record_type = self._record_type
        accessor = record_type.accessor
        sink.write(f"{record_type.name}: {{ ")
        for field in record_type.fields:
            if field.kind.is_repeated:
                if accessor.count(record, field.name) == 0:
                    continue
                sink.write(f"{field.name}: ")
                _write_sequence(field, accessor.items(record, field.name), sink)
            else:
                if not accessor.has(record, field.name):
                    continue
                sink.write(f"{field.name}: ")
                _write_element(field, accessor.get(record, field.name), sink)
            sink.write(", ")
        sink.write("}")

    def render(self, record: Any) -> str:
        buf = io.StringIO()
        self.print_to(record, buf)
        return buf.getvalue()
