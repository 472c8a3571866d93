"""
Telemetry event records and their matcher catalog.

Pydantic models for the statsd events checked by the shell-subscriber and
uid-map tests, and the field declarations the catalog generates matchers and
printers from. Optional fields default to None and are present only when set
explicitly; repeated fields default to an empty list.

    from recordmatch.telemetry import TELEMETRY_CATALOG, AttributionNode

    expected = AttributionNode(uid=5, tag="alpha")
    assert actual == TELEMETRY_CATALOG.eq("AttributionNode", expected)

Ticket: 0091_record_matchers
"""

from enum import IntEnum

from pydantic import BaseModel, Field

from .catalog import Catalog, declare
from .config import MatchConfig
from .fields import nested, repeated, repeated_nested, scalar


class DisplayState(IntEnum):
    DISPLAY_STATE_UNKNOWN = 0
    DISPLAY_STATE_OFF = 1
    DISPLAY_STATE_ON = 2
    DISPLAY_STATE_DOZE = 3
    DISPLAY_STATE_DOZE_SUSPEND = 4
    DISPLAY_STATE_VR = 5
    DISPLAY_STATE_ON_SUSPEND = 6


class BatteryPluggedState(IntEnum):
    BATTERY_PLUGGED_NONE = 0
    BATTERY_PLUGGED_AC = 1
    BATTERY_PLUGGED_USB = 2
    BATTERY_PLUGGED_WIRELESS = 4
    BATTERY_PLUGGED_DOCK = 8


class TestAtomState(IntEnum):
    __test__ = False

    UNKNOWN = 0
    OFF = 1
    ON = 2


# ---------------------------------------------------------------------------
# Record models
# ---------------------------------------------------------------------------


class PackageInfo(BaseModel):
    """One installed package in a uid map snapshot."""

    version: int | None = None
    uid: int | None = None
    deleted: bool | None = None
    truncated_certificate_hash: bytes | None = None
    name_hash: int | None = None
    version_string_hash: int | None = None
    name: str | None = None
    version_string: str | None = None
    installer_index: int | None = None
    installer_hash: int | None = None
    installer: str | None = None


class AttributionNode(BaseModel):
    uid: int | None = None
    tag: str | None = None


class ScreenStateChanged(BaseModel):
    state: DisplayState | None = None


class TrainExperimentIds(BaseModel):
    experiment_id: list[int] = Field(default_factory=list)


class TestAtomReported(BaseModel):
    """Atom exercising every field shape the logging pipeline supports."""

    __test__ = False  # not a pytest test class

    attribution_node: list[AttributionNode] = Field(default_factory=list)
    int_field: int | None = None
    long_field: int | None = None
    float_field: float | None = None
    string_field: str | None = None
    boolean_field: bool | None = None
    state: TestAtomState | None = None
    bytes_field: TrainExperimentIds | None = None
    repeated_int_field: list[int] = Field(default_factory=list)
    repeated_long_field: list[int] = Field(default_factory=list)
    repeated_float_field: list[float] = Field(default_factory=list)
    repeated_string_field: list[str] = Field(default_factory=list)
    repeated_boolean_field: list[bool] = Field(default_factory=list)
    repeated_enum_field: list[TestAtomState] = Field(default_factory=list)


class CpuActiveTime(BaseModel):
    uid: int | None = None
    time_millis: int | None = None


class PluggedStateChanged(BaseModel):
    state: BatteryPluggedState | None = None


class Atom(BaseModel):
    """Envelope holding exactly one pushed atom."""

    screen_state_changed: ScreenStateChanged | None = None
    test_atom_reported: TestAtomReported | None = None


class ShellData(BaseModel):
    """Batch of atoms delivered to a shell subscriber."""

    atom: list[Atom] = Field(default_factory=list)
    elapsed_timestamp_nanos: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Declarations (children before parents)
# ---------------------------------------------------------------------------

TELEMETRY_DECLARATIONS = (
    declare(
        "PackageInfo",
        scalar("version"),
        scalar("uid"),
        scalar("deleted"),
        scalar("truncated_certificate_hash"),
        scalar("name_hash"),
        scalar("version_string_hash"),
        scalar("name"),
        scalar("version_string"),
        scalar("installer_index"),
        scalar("installer_hash"),
        scalar("installer"),
        model=PackageInfo,
    ),
    declare("AttributionNode", scalar("uid"), scalar("tag"), model=AttributionNode),
    declare("ScreenStateChanged", scalar("state"), model=ScreenStateChanged),
    declare("TrainExperimentIds", repeated("experiment_id"), model=TrainExperimentIds),
    declare(
        "TestAtomReported",
        repeated_nested("attribution_node", "AttributionNode"),
        scalar("int_field"),
        scalar("long_field"),
        scalar("float_field"),
        scalar("string_field"),
        scalar("boolean_field"),
        scalar("state"),
        nested("bytes_field", "TrainExperimentIds"),
        repeated("repeated_int_field"),
        repeated("repeated_long_field"),
        repeated("repeated_float_field"),
        repeated("repeated_string_field"),
        repeated("repeated_boolean_field"),
        repeated("repeated_enum_field"),
        model=TestAtomReported,
    ),
    declare("CpuActiveTime", scalar("uid"), scalar("time_millis"), model=CpuActiveTime),
    declare("PluggedStateChanged", scalar("state"), model=PluggedStateChanged),
    declare(
        "Atom",
        nested("screen_state_changed", "ScreenStateChanged"),
        nested("test_atom_reported", "TestAtomReported"),
        model=Atom,
    ),
    declare(
        "ShellData",
        repeated_nested("atom", "Atom"),
        repeated("elapsed_timestamp_nanos"),
        model=ShellData,
    ),
)


def build_telemetry_catalog(config: MatchConfig | None = None) -> Catalog:
    """Build and freeze a catalog holding every telemetry record type."""
    catalog = Catalog(config)
    catalog.define_all(TELEMETRY_DECLARATIONS)
    return catalog.freeze()


TELEMETRY_CATALOG = build_telemetry_catalog()
