"""Clinical record shapes read by the harness.

The record store is an external collaborator; these dataclasses describe the
subset of its data model that the submission engine and the assertion API
read. Store implementations may return these types directly or any objects
exposing the same attributes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Union


@dataclass(frozen=True)
class Concept:
    """A coded clinical concept, used both as an observation's question and as a coded answer."""
    concept_id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class Drug:
    """A drug reference used as an observation value."""
    drug_id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class ComplexValue:
    """A reference to a complex (handler-backed) observation value, addressed by key."""
    key: str
    title: Optional[str] = None


@dataclass(frozen=True)
class Provider:
    person_id: Optional[int]
    name: Optional[str] = None


@dataclass(frozen=True)
class Location:
    location_id: Optional[int]
    name: Optional[str] = None


@dataclass(frozen=True)
class RecordType:
    record_type_id: Optional[int]
    name: Optional[str] = None


@dataclass
class Subject:
    """The clinical individual a form instance concerns.

    ``subject_id`` is None until the record store has persisted the subject.
    """
    subject_id: Optional[int]
    name: Optional[str] = None


@dataclass
class Observation:
    """A single recorded clinical fact.

    An observation is either a leaf carrying exactly one scalar value field,
    or a grouping node with no scalar value and one or more group members.

    Attributes:
        concept: The question concept of this observation
        value_coded: Coded answer
        value_drug: Drug answer
        value_numeric: Numeric answer
        value_datetime: Date or datetime answer
        value_text: Free-text answer
        value_complex: Complex answer
        group_members: Child observations when this is a group
        voided: Whether the observation has been voided
        obs_id: Store-assigned identifier
    """
    concept: Concept
    value_coded: Optional[Concept] = None
    value_drug: Optional[Drug] = None
    value_numeric: Optional[Union[int, float, Decimal]] = None
    value_datetime: Optional[Any] = None
    value_text: Optional[str] = None
    value_complex: Optional[ComplexValue] = None
    group_members: List["Observation"] = field(default_factory=list)
    voided: bool = False
    obs_id: Optional[int] = None

    @property
    def scalar_values(self) -> List[Any]:
        return [
            self.value_coded,
            self.value_drug,
            self.value_numeric,
            self.value_datetime,
            self.value_text,
            self.value_complex,
        ]

    @property
    def value(self) -> Any:
        """The first populated scalar value, or None for groups and empty leaves."""
        for candidate in self.scalar_values:
            if candidate is not None:
                return candidate
        return None

    @property
    def is_group(self) -> bool:
        return bool(self.group_members)

    def members(self, include_voided: bool = False) -> List["Observation"]:
        """Direct children of this observation."""
        return [o for o in self.group_members if include_voided or not o.voided]


@dataclass
class Record:
    """A timestamped clinical encounter created or edited by a form submission.

    ``observations`` holds the top-level observations only; group members hang
    off their group. Use :meth:`all_observations` for the flattened tree.
    """
    record_id: Optional[int]
    subject: Optional[Subject] = None
    record_datetime: Optional[datetime] = None
    provider: Optional[Provider] = None
    location: Optional[Location] = None
    record_type: Optional[RecordType] = None
    observations: List[Observation] = field(default_factory=list)
    voided: bool = False
    date_created: Optional[datetime] = None
    date_changed: Optional[datetime] = None

    def all_observations(self, include_voided: bool = False) -> List[Observation]:
        """Every observation in the tree, groups and leaves, depth first."""
        found: List[Observation] = []
        stack = list(reversed(self.observations))
        while stack:
            obs = stack.pop()
            if obs.voided and not include_voided:
                continue
            found.append(obs)
            stack.extend(reversed(obs.group_members))
        return found

    def leaf_observations(self, include_voided: bool = False) -> List[Observation]:
        """Observations in the tree that are not groups."""
        return [o for o in self.all_observations(include_voided) if not o.is_group]


__all__ = [
    "Concept",
    "Drug",
    "ComplexValue",
    "Provider",
    "Location",
    "RecordType",
    "Subject",
    "Observation",
    "Record",
]
