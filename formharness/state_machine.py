"""Phase state machine for scenario runs.

A scenario moves through its phases strictly in order:

    pending -> entry -> view_subject -> view_record -> edit -> completed

Optional phases may be skipped, but a run never goes back to an earlier
phase. Any non-terminal phase may move to failed.

Usage:
    >>> sm = ScenarioStateMachine(scenario_id="scn_123")
    >>> sm.transition_to(ScenarioPhase.ENTRY)
    >>> sm.transition_to(ScenarioPhase.EDIT)
    >>> sm.phase
    <ScenarioPhase.EDIT: 'edit'>
    >>> len(sm.get_events())
    2
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from formharness.errors import HarnessError
from formharness.events import ScenarioEvent
from formharness.types import EventType, ScenarioPhase

logger = logging.getLogger(__name__)


class InvalidPhaseTransitionError(HarnessError):
    """Raised when a scenario attempts to move to a phase out of order.

    Attributes:
        current_phase: The phase before the attempted transition
        target_phase: The phase that was attempted
    """

    def __init__(self, current_phase: ScenarioPhase, target_phase: ScenarioPhase, message: str):
        self.current_phase = current_phase
        self.target_phase = target_phase
        super().__init__(message)


PHASE_ORDER: List[ScenarioPhase] = [
    ScenarioPhase.PENDING,
    ScenarioPhase.ENTRY,
    ScenarioPhase.VIEW_SUBJECT,
    ScenarioPhase.VIEW_RECORD,
    ScenarioPhase.EDIT,
    ScenarioPhase.COMPLETED,
]

TERMINAL_PHASES: Set[ScenarioPhase] = {ScenarioPhase.COMPLETED, ScenarioPhase.FAILED}


def _build_transitions() -> Dict[ScenarioPhase, Set[ScenarioPhase]]:
    transitions: Dict[ScenarioPhase, Set[ScenarioPhase]] = {}
    for i, phase in enumerate(PHASE_ORDER):
        if phase in TERMINAL_PHASES:
            transitions[phase] = set()
            continue
        # entry always runs, so pending may only move to entry (or fail)
        later = {PHASE_ORDER[i + 1]} if phase == ScenarioPhase.PENDING else set(PHASE_ORDER[i + 1:])
        transitions[phase] = later | {ScenarioPhase.FAILED}
    transitions[ScenarioPhase.FAILED] = set()
    return transitions


# Maps each phase to the set of phases it can move to
VALID_TRANSITIONS: Dict[ScenarioPhase, Set[ScenarioPhase]] = _build_transitions()

PHASE_TO_EVENT_TYPE: Dict[ScenarioPhase, EventType] = {
    ScenarioPhase.COMPLETED: EventType.SCENARIO_COMPLETED,
    ScenarioPhase.FAILED: EventType.SCENARIO_FAILED,
}


@dataclass
class ScenarioStateMachine:
    """Tracks the current phase of one scenario run.

    Attributes:
        scenario_id: Unique identifier for this run
        phase: Current phase

    Examples:
        >>> sm = ScenarioStateMachine(scenario_id="scn_123")
        >>> sm.can_transition_to(ScenarioPhase.EDIT)
        False
        >>> sm.can_transition_to(ScenarioPhase.ENTRY)
        True
    """

    scenario_id: str
    phase: ScenarioPhase = ScenarioPhase.PENDING
    _events: List[ScenarioEvent] = field(default_factory=list, init=False, repr=False)

    def can_transition_to(self, target_phase: ScenarioPhase) -> bool:
        return target_phase in VALID_TRANSITIONS.get(self.phase, set())

    def transition_to(self, target_phase: ScenarioPhase, payload: Optional[Dict[str, Any]] = None) -> None:
        """Move to ``target_phase`` and record the transition event.

        Raises:
            InvalidPhaseTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_phase):
            valid = VALID_TRANSITIONS[self.phase]
            raise InvalidPhaseTransitionError(
                current_phase=self.phase,
                target_phase=target_phase,
                message=(
                    f"Invalid phase transition: cannot move from "
                    f"'{self.phase.value}' to '{target_phase.value}'. "
                    f"Valid transitions from '{self.phase.value}' are: "
                    f"{', '.join(sorted(p.value for p in valid))}"
                    if valid
                    else f"Invalid phase transition: '{self.phase.value}' is a terminal phase, "
                    f"no transitions are allowed."
                ),
            )

        old_phase = self.phase
        self.phase = target_phase
        logger.info("Scenario %s: %s -> %s", self.scenario_id, old_phase.value, target_phase.value)
        self.record(
            PHASE_TO_EVENT_TYPE.get(target_phase, EventType.PHASE_STARTED),
            {"from_phase": old_phase.value, "to_phase": target_phase.value, **(payload or {})},
        )

    def record(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> ScenarioEvent:
        """Record an event in the current phase."""
        event = ScenarioEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            scenario_id=self.scenario_id,
            ts=datetime.now(timezone.utc),
            phase=self.phase,
            payload=payload,
        )
        self._events.append(event)
        return event

    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def get_events(self) -> List[ScenarioEvent]:
        """All recorded events in chronological order."""
        return list(self._events)

    def to_dict(self) -> Dict[str, Any]:
        """
        Examples:
            >>> ScenarioStateMachine(scenario_id="scn_1", phase=ScenarioPhase.EDIT).to_dict()
            {'scenarioId': 'scn_1', 'phase': 'edit'}
        """
        return {"scenarioId": self.scenario_id, "phase": self.phase.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioStateMachine":
        return cls(scenario_id=data["scenarioId"], phase=ScenarioPhase(data["phase"]))


__all__ = [
    "ScenarioStateMachine",
    "InvalidPhaseTransitionError",
    "VALID_TRANSITIONS",
    "PHASE_ORDER",
]
