"""
Shared fixtures for recordmatch tests.

Bar and Foo are the two-level example records used throughout: Foo holds a
scalar, a repeated scalar, a nested Bar and a repeated Bar.
"""

import pytest
from pydantic import BaseModel, Field

from recordmatch import Catalog, nested, repeated, repeated_nested, scalar
from recordmatch.telemetry import build_telemetry_catalog


class Bar(BaseModel):
    aa: int | None = None


class Foo(BaseModel):
    a: int | None = None
    b: list[float] = Field(default_factory=list)
    bar: Bar | None = None
    repeated_bar: list[Bar] = Field(default_factory=list)


class Counter(BaseModel):
    """Record whose optional field defaults to a non-None value."""

    count: int = 0
    label: str | None = None


def build_foo_catalog(**catalog_kwargs) -> Catalog:
    catalog = Catalog(**catalog_kwargs)
    catalog.define("Bar", scalar("aa"), model=Bar)
    catalog.define(
        "Foo",
        scalar("a"),
        repeated("b"),
        nested("bar", "Bar"),
        repeated_nested("repeated_bar", "Bar"),
        model=Foo,
    )
    catalog.define("Counter", scalar("count"), scalar("label"), model=Counter)
    return catalog.freeze()


@pytest.fixture
def foo_catalog() -> Catalog:
    return build_foo_catalog()


@pytest.fixture
def dict_catalog() -> Catalog:
    """Catalog declared without models; records are plain dicts."""
    catalog = Catalog()
    catalog.define("Node", scalar("uid"), scalar("tag"))
    catalog.define("Group", scalar("name"), repeated_nested("nodes", "Node"), nested("owner", "Node"))
    return catalog.freeze()


@pytest.fixture
def telemetry():
    return build_telemetry_catalog()
