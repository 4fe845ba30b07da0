"""Submission results and the fluent assertion API over them.

A SubmissionResult holds either the validation errors of a rejected
submission, or the subject and most recent record after an accepted one.
Its ``assert_*`` methods fail the calling test with an AssertionError that
states the expected and actual state, and return the result so checks can
be chained:

    >>> result.assert_no_errors().assert_record_created().assert_obs_created(5089, 70)  # doctest: +SKIP
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, NoReturn, Optional, Sequence, Tuple

from formharness.assertions import find_obs, has_scalar_value, is_matching_obs_group, to_expected
from formharness.errors import SubmissionError
from formharness.serializer import serialize

logger = logging.getLogger(__name__)


def _fail(message: str) -> NoReturn:
    raise AssertionError(message)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one submission attempt.

    Attributes:
        validation_errors: Errors reported by the submission controller, in order
        subject: Subject after the submission was applied
        record: Most recently effective record of the subject
        store: Record store the record was read from (used for observation lookups)
    """
    validation_errors: Tuple[SubmissionError, ...] = ()
    subject: Any = None
    record: Any = None
    store: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "validation_errors", tuple(self.validation_errors))
        if self.validation_errors and (self.record is not None or self.subject is not None):
            raise ValueError("A submission result holds either validation errors or a saved record, not both")

    @classmethod
    def rejected(cls, errors: Sequence[SubmissionError]) -> "SubmissionResult":
        if not errors:
            raise ValueError("A rejected submission needs at least one validation error")
        return cls(validation_errors=tuple(errors))

    @classmethod
    def saved(cls, subject: Any, record: Any, store: Any = None) -> "SubmissionResult":
        return cls(subject=subject, record=record, store=store)

    @property
    def has_errors(self) -> bool:
        return bool(self.validation_errors)

    # -- observation access ------------------------------------------------

    def observations(self, include_voided: bool = False) -> List[Any]:
        """Flattened observation tree of the record (empty without a record)."""
        if self.record is None:
            return []
        if self.store is not None:
            return list(self.store.get_observations(self.record, include_voided))
        return list(self.record.all_observations(include_voided))

    def obs_created_count(self) -> int:
        return len(self.observations())

    def obs_group_created_count(self) -> int:
        return sum(1 for o in self.observations() if o.is_group)

    def obs_leaf_created_count(self) -> int:
        return sum(1 for o in self.observations() if not o.is_group)

    # -- errors --------------------------------------------------------------

    def assert_no_errors(self) -> "SubmissionResult":
        if self.validation_errors:
            _fail(f"Expected no validation errors but got: {[str(e) for e in self.validation_errors]}")
        return self

    def assert_errors(self, count: Optional[int] = None) -> "SubmissionResult":
        """Fail unless there are validation errors (exactly ``count`` of them, if given)."""
        found = len(self.validation_errors)
        if count is None and found == 0:
            _fail("Expected validation errors but there were none")
        if count is not None and found != count:
            _fail(f"Expected {count} validation errors but got {found}: {[str(e) for e in self.validation_errors]}")
        return self

    # -- subject -------------------------------------------------------------

    def assert_subject(self) -> "SubmissionResult":
        """Fail if there is no subject, or the subject has not been assigned an id."""
        if self.subject is None:
            _fail("Expected a subject but there is none")
        if self.subject.subject_id is None:
            _fail("Expected the subject to have been saved but it has no id")
        return self

    def assert_no_subject(self) -> "SubmissionResult":
        if self.subject is not None:
            _fail(f"Expected no subject but got {self.subject!r}")
        return self

    # -- record --------------------------------------------------------------

    def assert_record_created(self) -> "SubmissionResult":
        if self.record is None:
            _fail("Expected a record to be created but none was")
        return self

    def assert_no_record_created(self) -> "SubmissionResult":
        if self.record is not None:
            _fail(f"Expected no record but got {self.record!r}")
        return self

    def assert_record_edited(self) -> "SubmissionResult":
        self.assert_record_created()
        if self.record.date_changed is None:
            _fail("Record date changed not set on edit")
        return self

    def assert_record_voided(self) -> "SubmissionResult":
        self.assert_record_created()
        if not self.record.voided:
            _fail("Record not voided")
        return self

    def assert_record_not_voided(self) -> "SubmissionResult":
        self.assert_record_created()
        if self.record.voided:
            _fail("Record voided")
        return self

    def _assert_reference(self, label: str, ref: Any, id_attr: str, expected_id: Optional[int]) -> None:
        self.assert_record_created()
        if ref is None:
            _fail(f"Expected record {label} to be set but it is not")
        actual_id = getattr(ref, id_attr)
        if actual_id is None:
            _fail(f"Expected record {label} to have an id but it has none")
        if expected_id is not None and actual_id != expected_id:
            _fail(f"Expected record {label} {expected_id} but got {actual_id}")

    def assert_provider(self, expected_id: Optional[int] = None) -> "SubmissionResult":
        self._assert_reference("provider", self.record and self.record.provider, "person_id", expected_id)
        return self

    def assert_location(self, expected_id: Optional[int] = None) -> "SubmissionResult":
        self._assert_reference("location", self.record and self.record.location, "location_id", expected_id)
        return self

    def assert_record_type(self, expected_id: Optional[int] = None) -> "SubmissionResult":
        self._assert_reference("type", self.record and self.record.record_type, "record_type_id", expected_id)
        return self

    def assert_record_datetime(self, expected: Optional[datetime] = None) -> "SubmissionResult":
        self.assert_record_created()
        actual = self.record.record_datetime
        if actual is None:
            _fail("Expected record datetime to be set but it is not")
        if expected is not None and actual != expected:
            _fail(f"Expected record datetime {expected} but got {actual}")
        return self

    # -- observations --------------------------------------------------------

    def assert_obs_created_count(self, expected: int) -> "SubmissionResult":
        found = self.obs_created_count()
        if found != expected:
            _fail(f"Expected to create {expected} obs but got {found}")
        return self

    def assert_obs_group_created_count(self, expected: int) -> "SubmissionResult":
        found = self.obs_group_created_count()
        if found != expected:
            _fail(f"Expected to create {expected} obs groups but got {found}")
        return self

    def assert_obs_leaf_created_count(self, expected: int) -> "SubmissionResult":
        found = self.obs_leaf_created_count()
        if found != expected:
            _fail(f"Expected to create {expected} non-group obs but got {found}")
        return self

    def _assert_obs_exists(self, voided: bool, concept_id: int, value: Any) -> None:
        self.assert_record_created()
        if find_obs(self.observations(include_voided=voided), concept_id, value, voided_only=voided) is None:
            kind = "voided obs" if voided else "obs"
            _fail(f"Could not find {kind} with conceptId {concept_id} and value {serialize(value)!r}")

    def assert_obs_created(self, concept_id: int, value: Any = None) -> "SubmissionResult":
        """Fail unless the record has an observation of ``concept_id`` with ``value`` (None: any value)."""
        self._assert_obs_exists(False, concept_id, value)
        return self

    def assert_obs_voided(self, concept_id: int, value: Any = None) -> "SubmissionResult":
        """Fail unless the record has a voided observation of ``concept_id`` with ``value``."""
        self._assert_obs_exists(True, concept_id, value)
        return self

    def assert_obs_group_created(self, grouping_concept_id: int, *pairs: Any) -> "SubmissionResult":
        """Fail unless some group of ``grouping_concept_id`` contains every expected member.

        Args:
            grouping_concept_id: Concept id of the grouping observation
            *pairs: (child concept id, value) tuples or ExpectedObsValues

        Examples:
            >>> result.assert_obs_group_created(10, (20, "5"), (21, "yes"))  # doctest: +SKIP
        """
        self.assert_record_created()
        expected = to_expected(pairs)
        for obs in self.observations():
            if obs.concept.concept_id != grouping_concept_id:
                continue
            if has_scalar_value(obs):
                _fail(
                    f"Obs group with groupingConceptId {grouping_concept_id} "
                    f"should not have a value but has {serialize(obs.value)!r}"
                )
            if is_matching_obs_group(obs, expected):
                return self
        actual = [
            [f"{m.concept.concept_id}->{serialize(m.value)}" for m in o.members()]
            for o in self.observations()
            if o.concept.concept_id == grouping_concept_id
        ]
        _fail(
            f"Cannot find an obs group {grouping_concept_id} matching "
            f"{[str(e) for e in expected]}; candidate groups: {actual}"
        )

    # -- reporting -------------------------------------------------------------

    def describe(self) -> str:
        """Human-readable summary of errors, record and observations."""
        lines: List[str] = []
        if not self.validation_errors:
            lines.append("No Errors")
        else:
            lines.extend(str(e) for e in self.validation_errors)
        if self.record is None:
            lines.append("No record created")
            return "\n".join(lines)
        record = self.record
        lines.append("=== Record ===")
        lines.append(f"Created: {record.date_created}  Edited: {record.date_changed}")
        lines.append(f"Date: {record.record_datetime}")
        lines.append(f"Location: {record.location.name if record.location else None}")
        lines.append(f"Provider: {record.provider.name if record.provider else None}")
        lines.append("    (obs)")
        observations = self.observations()
        if not observations:
            lines.append("None")
        for obs in observations:
            name = obs.concept.name or obs.concept.concept_id
            lines.append(f"{name} -> {serialize(obs.value)}")
        return "\n".join(lines)

    def log_summary(self) -> None:
        logger.info("Submission result:\n%s", self.describe())


__all__ = [
    "SubmissionResult",
]
