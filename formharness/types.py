"""Core type definitions for the form regression harness.

This module defines the fundamental enums used throughout the harness:
- FormMode: Rendering modes understood by the form engine
- ScenarioPhase: Lifecycle phases of one scenario run
- EventType: Audit event types emitted while a scenario runs
- ValueKind: Value shapes the serializer knows how to parse back

These types form the contract between scenario authors, the harness and the
external form engine collaborators.
"""

from enum import Enum


class FormMode(str, Enum):
    """Modes in which the form engine renders a form definition."""
    ENTER = "enter"
    VIEW = "view"
    EDIT = "edit"


class ScenarioPhase(str, Enum):
    """Scenario lifecycle phases.

    Phases only ever move forward (see formharness.state_machine).
    Terminal phases: completed, failed.
    """
    PENDING = "pending"
    ENTRY = "entry"
    VIEW_SUBJECT = "view_subject"
    VIEW_RECORD = "view_record"
    EDIT = "edit"
    COMPLETED = "completed"
    FAILED = "failed"


class EventType(str, Enum):
    """Audit event types for the scenario event stream."""
    PHASE_STARTED = "phase.started"
    FORM_RENDERED = "form.rendered"
    REQUEST_SUBMITTED = "request.submitted"
    VALIDATION_FAILED = "validation.failed"
    RECORD_SAVED = "record.saved"
    SCENARIO_COMPLETED = "scenario.completed"
    SCENARIO_FAILED = "scenario.failed"


class ValueKind(str, Enum):
    """Value shapes that serialized strings can be parsed back into.

    Used by formharness.serializer.parse_value.
    """
    TEXT = "text"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    CODED = "coded"
    DRUG = "drug"
    COMPLEX = "complex"


__all__ = [
    "FormMode",
    "ScenarioPhase",
    "EventType",
    "ValueKind",
]
