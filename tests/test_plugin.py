"""
pytest plugin unit tests

Ticket: 0091_record_matchers
"""

import pytest

from conftest import Bar, Foo
from recordmatch import Catalog, MatchConfig, PresencePolicy
from recordmatch.config import ENV_MAX_MISMATCHES, ENV_PRESENCE_POLICY
from recordmatch.plugin import config_from_pytest, pytest_assertrepr_compare
from recordmatch.telemetry import AttributionNode


class FakeConfig:
    """Stand-in for pytest.Config exposing only getini()."""

    def __init__(self, **ini):
        self._ini = ini

    def getini(self, name):
        return self._ini.get(name, "")


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_PRESENCE_POLICY, raising=False)
    monkeypatch.delenv(ENV_MAX_MISMATCHES, raising=False)


class TestAssertReprCompare:

    def test_explains_record_mismatch(self, foo_catalog):
        """A failed comparison lists the differing fields."""
        matcher = foo_catalog.eq("Foo", Foo(a=1))
        lines = pytest_assertrepr_compare(None, "==", Foo(a=2), matcher)
        assert lines[0] == "Foo mismatch (1 field(s) differ)"
        assert "  - a: expected 1, actual 2" in lines

    def test_matcher_on_left_side(self, foo_catalog):
        """The matcher may be on either side of ==."""
        matcher = foo_catalog.eq("Bar", Bar(aa=1))
        lines = pytest_assertrepr_compare(None, "==", matcher, Bar(aa=3))
        assert "  - aa: expected 1, actual 3" in lines

    def test_explains_sequence_mismatch(self, foo_catalog):
        """Sequence matchers are explained too."""
        matcher = foo_catalog.pointwise("Bar", [Bar(aa=1)])
        lines = pytest_assertrepr_compare(None, "==", [Bar(aa=1), Bar(aa=2)], matcher)
        assert lines[0] == "Bar[] mismatch (1 field(s) differ)"

    def test_limit_comes_from_matcher_config(self, foo_catalog):
        """The listed mismatches stop at the matcher's limit."""
        matcher = foo_catalog.eq(
            "Foo", Foo(a=1, b=[1.0], bar=Bar(aa=1)), config=MatchConfig(max_reported_mismatches=1)
        )
        lines = pytest_assertrepr_compare(None, "==", Foo(a=2, b=[], bar=Bar(aa=2)), matcher)
        assert lines[-1] == "  ... and 2 more"

    def test_ignores_other_operators(self, foo_catalog):
        matcher = foo_catalog.eq("Foo", Foo(a=1))
        assert pytest_assertrepr_compare(None, "!=", Foo(a=2), matcher) is None

    def test_ignores_plain_values(self):
        """Comparisons without a matcher are left to pytest."""
        assert pytest_assertrepr_compare(None, "==", 1, 2) is None

    def test_matching_values_have_no_explanation(self, foo_catalog):
        matcher = foo_catalog.eq("Foo", Foo(a=1))
        assert pytest_assertrepr_compare(None, "==", Foo(a=1), matcher) is None


class TestConfigFromPytest:

    def test_defaults(self, clean_env):
        """No ini or environment settings gives the default config."""
        assert config_from_pytest(FakeConfig()) == MatchConfig()

    def test_ini_values(self, clean_env):
        """Ini settings are read."""
        config = config_from_pytest(
            FakeConfig(recordmatch_presence_policy="presence", recordmatch_max_mismatches="4")
        )
        assert config.presence_policy is PresencePolicy.PRESENCE
        assert config.max_reported_mismatches == 4

    def test_ini_overrides_environment(self, clean_env, monkeypatch):
        """Ini settings win over RECORDMATCH_* variables."""
        monkeypatch.setenv(ENV_PRESENCE_POLICY, "presence")
        monkeypatch.setenv(ENV_MAX_MISMATCHES, "9")
        config = config_from_pytest(FakeConfig(recordmatch_presence_policy="value"))
        assert config.presence_policy is PresencePolicy.VALUE
        assert config.max_reported_mismatches == 9

    def test_non_integer_ini_limit_is_usage_error(self, clean_env):
        """A bad recordmatch_max_mismatches stops the run with a usage error."""
        with pytest.raises(pytest.UsageError, match="recordmatch_max_mismatches must be an integer"):
            config_from_pytest(FakeConfig(recordmatch_max_mismatches="lots"))

    def test_bad_ini_policy_is_usage_error(self, clean_env):
        with pytest.raises(pytest.UsageError, match="Unknown presence policy"):
            config_from_pytest(FakeConfig(recordmatch_presence_policy="loose"))

    def test_bad_environment_setting_is_usage_error(self, clean_env, monkeypatch):
        """A bad RECORDMATCH_* variable is reported as a usage error."""
        monkeypatch.setenv(ENV_MAX_MISMATCHES, "many")
        with pytest.raises(pytest.UsageError, match="RECORDMATCH_MAX_MISMATCHES"):
            config_from_pytest(FakeConfig())


class TestFixtures:

    def test_record_catalog_defaults_to_telemetry(self, record_catalog):
        """Without recordmatch_catalog the fixture is the telemetry catalog."""
        assert isinstance(record_catalog, Catalog)
        assert "ShellData" in record_catalog
        assert record_catalog.eq("AttributionNode", AttributionNode(uid=1)) == AttributionNode(uid=1)

    def test_recordmatch_config_fixture(self, recordmatch_config):
        assert isinstance(recordmatch_config, MatchConfig)

    def test_assert_rewrite_uses_explanation(self, foo_catalog):
        """Plain assert statements show the mismatch explanation."""
        with pytest.raises(AssertionError) as exc_info:
            assert Foo(a=2) == foo_catalog.eq("Foo", Foo(a=1))
        assert "a: expected 1, actual 2" in str(exc_info.value)
