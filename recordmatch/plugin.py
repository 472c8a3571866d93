"""
pytest plugin for record matchers.

Registered through the ``pytest11`` entry point. Provides:

- an assertion explanation for ``assert actual == matcher`` listing the
  printed expected and actual records and every differing field
- ini options ``recordmatch_presence_policy``, ``recordmatch_max_mismatches``
  and ``recordmatch_catalog``
- fixtures ``recordmatch_config`` and ``record_catalog``

Ticket: 0091_record_matchers
"""

from pathlib import Path

import pytest

from .catalog import Catalog
from .config import MatchConfig
from .loader import load_catalog
from .matchers import RecordMatcher, SequenceMatcher
from .telemetry import build_telemetry_catalog


def pytest_addoption(parser):
    parser.addini(
        "recordmatch_presence_policy",
        type="string",
        default="",
        help="Optional-field comparison policy for record matchers: value or presence",
    )
    parser.addini(
        "recordmatch_max_mismatches",
        type="string",
        default="",
        help="Maximum number of differing fields listed in a record assertion failure",
    )
    parser.addini(
        "recordmatch_catalog",
        type="string",
        default="",
        help="YAML/JSON record catalog for the record_catalog fixture (relative to rootdir)",
    )


def config_from_pytest(pytestconfig: pytest.Config) -> MatchConfig:
    """Environment settings, overridden by the ini file where it sets a value.

    Raises:
        pytest.UsageError: If a setting is not a valid policy or limit
    """
    policy = pytestconfig.getini("recordmatch_presence_policy") or None
    raw_max = pytestconfig.getini("recordmatch_max_mismatches") or None
    try:
        max_mismatches = int(raw_max) if raw_max else None
    except ValueError:
        raise pytest.UsageError(
            f"recordmatch_max_mismatches must be an integer, got '{raw_max}'"
        ) from None
    try:
        return MatchConfig.from_env().with_overrides(
            presence_policy=policy,
            max_reported_mismatches=max_mismatches,
        )
    except ValueError as exc:
        raise pytest.UsageError(f"recordmatch: {exc}") from None


def pytest_assertrepr_compare(config, op, left, right):
    if op != "==":
        return None
    for matcher, actual in ((left, right), (right, left)):
        if isinstance(matcher, (RecordMatcher, SequenceMatcher)):
            result = matcher.explain(actual)
            if result:
                return None
            return result.describe(matcher.config.max_reported_mismatches)
    return None


@pytest.fixture(scope="session")
def recordmatch_config(pytestconfig) -> MatchConfig:
    """Matcher settings resolved from the environment and ini file."""
    return config_from_pytest(pytestconfig)


@pytest.fixture(scope="session")
def record_catalog(pytestconfig, recordmatch_config) -> Catalog:
    """Catalog named by ``recordmatch_catalog``, or the built-in telemetry catalog."""
    path = pytestconfig.getini("recordmatch_catalog")
    if not path:
        return build_telemetry_catalog(recordmatch_config)
    path = Path(path)
    if not path.is_absolute():
        path = Path(pytestconfig.rootpath) / path
    return load_catalog(path, recordmatch_config)
