"""
Configuration for record matching

Settings come from keyword arguments, environment variables, or the pytest
ini file (see plugin.py). Defaults apply when nothing is set.

Environment:
    RECORDMATCH_PRESENCE_POLICY   "value" (default) or "presence"
    RECORDMATCH_MAX_MISMATCHES    cap on field mismatches listed in a failure (default 20)

Ticket: 0091_record_matchers
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

ENV_PRESENCE_POLICY = "RECORDMATCH_PRESENCE_POLICY"
ENV_MAX_MISMATCHES = "RECORDMATCH_MAX_MISMATCHES"

DEFAULT_MAX_MISMATCHES = 20


class PresencePolicy(str, Enum):
    """How optional fields are compared.

    VALUE:    compare getter values only. An unset scalar reads as its type's
              zero value ("", 0, false, first enum member) and an unset
              nested record reads as an empty record, so either equals an
              explicitly set field carrying that value.
    PRESENCE: additionally require optional scalar and nested fields to be
              present on both sides or absent on both sides.
    """

    VALUE = "value"
    PRESENCE = "presence"

    @classmethod
    def parse(cls, raw: "str | PresencePolicy") -> "PresencePolicy":
        if isinstance(raw, PresencePolicy):
            return raw
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown presence policy: '{raw}'. "
                f"Valid policies: {sorted(p.value for p in cls)}"
            ) from None


@dataclass(frozen=True)
class MatchConfig:
    """Settings shared by every matcher built from one catalog."""

    presence_policy: PresencePolicy = PresencePolicy.VALUE
    max_reported_mismatches: int = DEFAULT_MAX_MISMATCHES

    def __post_init__(self):
        object.__setattr__(self, "presence_policy", PresencePolicy.parse(self.presence_policy))
        if self.max_reported_mismatches < 1:
            raise ValueError(
                f"max_reported_mismatches must be positive, got {self.max_reported_mismatches}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MatchConfig":
        """Build a config from environment variables, defaulting unset values.

        Raises:
            ValueError: If a variable holds an unknown policy or a non-integer limit
        """
        environ = os.environ if environ is None else environ
        policy = environ.get(ENV_PRESENCE_POLICY, PresencePolicy.VALUE.value)
        raw_max = environ.get(ENV_MAX_MISMATCHES, str(DEFAULT_MAX_MISMATCHES))
        try:
            max_mismatches = int(raw_max)
        except ValueError:
            raise ValueError(f"{ENV_MAX_MISMATCHES} must be an integer, got '{raw_max}'") from None
        return cls(presence_policy=policy, max_reported_mismatches=max_mismatches)

    def with_overrides(self, **changes) -> "MatchConfig":
        """Return a copy with the given settings replaced (None values are ignored)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes) if changes else self
