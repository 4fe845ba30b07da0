"""Observation matching used by the submission result assertions.

Expected values are compared with actual observations through
formharness.serializer.serialize on both sides, so a check passes exactly
when the canonical strings are equal.

Observation-group matching is a set of independent existence checks, not an
assignment: a group matches when every expected (concept, value) pair is
found among its direct members. Extra members do not disqualify a group, and
the same member may satisfy two expected pairs only if they are identical.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from formharness.serializer import serialize


@dataclass(frozen=True)
class ExpectedObsValue:
    """A concept id and the value an observation of it should carry.

    A None value means "presence only" for leaf checks; within a group it
    matches a member whose value serializes to the empty string.
    """
    concept_id: int
    value: Any = None

    def __str__(self) -> str:
        return f"{self.concept_id}->{self.value}"

    def matches(self, obs: Any) -> bool:
        if obs.concept.concept_id != self.concept_id:
            return False
        return serialize(self.value) == serialize(obs.value)


def has_scalar_value(obs: Any) -> bool:
    """Whether any of the observation's scalar value fields is populated."""
    return any(v is not None for v in obs.scalar_values)


def find_obs(
    observations: Iterable[Any],
    concept_id: int,
    value: Any = None,
    voided_only: bool = False,
) -> Optional[Any]:
    """First observation of ``concept_id`` whose value matches ``value``.

    A None ``value`` matches any observation of the concept.
    """
    expected = None if value is None else serialize(value)
    for obs in observations:
        if voided_only and not obs.voided:
            continue
        if obs.concept.concept_id != concept_id:
            continue
        if expected is None or expected == serialize(obs.value):
            return obs
    return None


def is_matching_obs_group(group: Any, expected: Sequence[ExpectedObsValue]) -> bool:
    """Whether every expected pair is satisfied by some direct member of ``group``."""
    members = group.members()
    return all(any(e.matches(m) for m in members) for e in expected)


def to_expected(pairs: Iterable[Any]) -> list:
    """Normalize (concept_id, value) tuples and ExpectedObsValues into ExpectedObsValues."""
    expected = []
    for pair in pairs:
        if isinstance(pair, ExpectedObsValue):
            expected.append(pair)
        else:
            concept_id, value = pair
            expected.append(ExpectedObsValue(concept_id, value))
    return expected


__all__ = [
    "ExpectedObsValue",
    "find_obs",
    "has_scalar_value",
    "is_matching_obs_group",
    "to_expected",
]
