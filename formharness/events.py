"""Event system for scenario runs.

Every phase transition, render and submission of a scenario emits a typed
ScenarioEvent. The runner records them in order and dispatches them to any
listeners registered on its EventEmitter, which lets suites trace or log a
scenario without adding hooks to it.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from formharness.types import EventType, ScenarioPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioEvent:
    """A single event in a scenario run.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_01H8...")
        type: Event type from EventType enum
        scenario_id: ID of the scenario run this event belongs to
        ts: UTC timestamp when the event occurred
        phase: Phase the scenario was in when the event occurred
        payload: Optional event-specific data (parameter counts, error ids, ...)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = ScenarioEvent(
        ...     event_id="evt_001",
        ...     type=EventType.PHASE_STARTED,
        ...     scenario_id="scn_001",
        ...     ts=datetime.now(timezone.utc),
        ...     phase=ScenarioPhase.ENTRY,
        ... )
        >>> event.to_dict()["phase"]
        'entry'
    """
    event_id: str
    type: EventType
    scenario_id: str
    ts: datetime
    phase: ScenarioPhase
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.phase, str):
            object.__setattr__(self, "phase", ScenarioPhase(self.phase))
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary; the timestamp is an ISO 8601 string."""
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "scenarioId": self.scenario_id,
            "ts": self.ts.isoformat(),
            "phase": self.phase.value,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Single-line JSON, suitable for appending to a JSONL trace file."""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioEvent":
        ts = datetime.fromisoformat(data["ts"].replace('Z', '+00:00'))
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            scenario_id=data["scenarioId"],
            ts=ts,
            phase=ScenarioPhase(data["phase"]),
            payload=data.get("payload"),
        )


EventListener = Callable[[ScenarioEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Dispatches scenario events to listeners.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged and the others still run)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.PHASE_STARTED, seen.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: ScenarioEvent) -> None:
        """Dispatch an event to type-specific listeners, then wildcard listeners.

        Listener exceptions are logged and do not reach the scenario: events
        are observations of the run, not part of it.
        """
        for listener in [*self._listeners.get(event.type, []), *self._any_listeners]:
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener %r failed on %s", listener, event.type.value)

    def clear(self) -> None:
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count listeners for ``event_type``, or all listeners (wildcards included) if None."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(v) for v in self._listeners.values())


__all__ = [
    "ScenarioEvent",
    "EventListener",
    "EventEmitter",
]
