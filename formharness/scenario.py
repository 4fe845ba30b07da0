"""Scenario orchestrator for form regression tests.

ScenarioRunner drives one form through its lifecycle against a form engine:

1. Entry (always): render the blank form for the subject, let the author fill
   in labelled widgets, and submit if any parameter was set.
2. View subject / view record (optional): render the subject, then the record
   produced by entry (or an override), in view mode.
3. Edit (optional): render the record in edit mode, rebuild the request a
   browser would send from the displayed values, let the author override
   fields, and submit.

Phases run strictly in order on the calling thread. The first failure of any
kind (a hook's AssertionError, a ProtocolViolation, a collaborator error)
marks the run failed and propagates unchanged; there is no retry.

Usage:
    >>> runner = ScenarioRunner(renderer, controller, store)  # doctest: +SKIP
    >>> report = runner.run(ScenarioHooks(form_name="vitals", entry=PhaseHooks(...)))  # doctest: +SKIP
    >>> report.phase  # doctest: +SKIP
    <ScenarioPhase.COMPLETED: 'completed'>
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from formharness.config import HarnessSettings, load_settings
from formharness.definitions import DefinitionLoader, FormDefinition
from formharness.events import EventEmitter, ScenarioEvent
from formharness.hooks import USE_DEFAULT_SUBJECT, PhaseHooks, RenderedForm, ScenarioHooks, resolve
from formharness.interfaces import FormRenderer, RecordStore, SubmissionController
from formharness.locator import locate
from formharness.parameters import SubmissionParameters
from formharness.results import SubmissionResult
from formharness.scraper import synthesize
from formharness.state_machine import ScenarioStateMachine
from formharness.submission import submit
from formharness.types import EventType, FormMode, ScenarioPhase

logger = logging.getLogger(__name__)


@dataclass
class ScenarioReport:
    """What happened during one completed scenario run.

    Attributes:
        scenario_id: Unique identifier of the run
        phase: Final phase (always COMPLETED for a returned report)
        entry_result: Result of the entry submission, if one happened
        edit_result: Result of the edit submission, if one happened
        phases_run: Phases that actually ran, in order
        events: Every event recorded during the run
    """
    scenario_id: str
    phase: ScenarioPhase
    entry_result: Optional[SubmissionResult] = None
    edit_result: Optional[SubmissionResult] = None
    phases_run: List[ScenarioPhase] = field(default_factory=list)
    events: List[ScenarioEvent] = field(default_factory=list)


class ScenarioRunner:
    """Runs scenarios against one form engine.

    Attributes:
        renderer: Renders form definitions into markup
        controller: Validates and applies submissions
        store: Reads subjects and records back
        settings: Harness settings (definition lookup, default subject)
        emitter: Receives every event of every run
    """

    def __init__(
        self,
        renderer: FormRenderer,
        controller: SubmissionController,
        store: RecordStore,
        settings: Optional[HarnessSettings] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.renderer = renderer
        self.controller = controller
        self.store = store
        self.settings = settings or load_settings()
        self.emitter = emitter or EventEmitter()

    def run(self, hooks: ScenarioHooks) -> ScenarioReport:
        """Run one scenario start to finish.

        Raises:
            Whatever a phase raised: AssertionError from hooks, ProtocolViolation,
            DefinitionNotFound, or collaborator errors.
        """
        sm = ScenarioStateMachine(scenario_id=f"scn_{uuid.uuid4().hex[:16]}")
        report = ScenarioReport(scenario_id=sm.scenario_id, phase=sm.phase)
        logger.info("Running scenario %s for form %r", sm.scenario_id, hooks.form_name)
        try:
            self._run(hooks, sm, report)
        except Exception as e:
            if not sm.is_terminal():
                self._advance(sm, ScenarioPhase.FAILED, {"error": type(e).__name__, "message": str(e)})
            report.phase = sm.phase
            report.events = sm.get_events()
            raise
        report.phase = sm.phase
        report.events = sm.get_events()
        return report

    def _run(self, hooks: ScenarioHooks, sm: ScenarioStateMachine, report: ScenarioReport) -> None:
        definition = self._loader(hooks).load(hooks.form_name)

        # Entry
        self._advance(sm, ScenarioPhase.ENTRY)
        report.phases_run.append(ScenarioPhase.ENTRY)
        subject = self._entry_subject(hooks)
        rendered = self._render(sm, hooks, definition, hooks.entry, subject, None, FormMode.ENTER)
        params = SubmissionParameters()
        self._populate(hooks.entry, rendered, params)
        subject_to_view: Any = None
        record_to_view: Any = None
        if len(params) > 0:
            report.entry_result = self._submit(sm, hooks.entry, rendered, params)
            subject_to_view = report.entry_result.subject
            record_to_view = report.entry_result.record
        else:
            logger.debug("Entry request left empty, nothing submitted")

        # View the subject without a record
        override = resolve(hooks.subject_to_view)
        if override is not None or hooks.do_view_subject:
            if override is not None:
                subject_to_view = override
            self._advance(sm, ScenarioPhase.VIEW_SUBJECT)
            report.phases_run.append(ScenarioPhase.VIEW_SUBJECT)
            self._render(sm, hooks, definition, hooks.view_subject, subject_to_view, None, FormMode.VIEW)

        # View the record
        override = resolve(hooks.record_to_view)
        if override is not None or hooks.do_view_record:
            if override is not None:
                record_to_view = override
            self._advance(sm, ScenarioPhase.VIEW_RECORD)
            report.phases_run.append(ScenarioPhase.VIEW_RECORD)
            self._render(sm, hooks, definition, hooks.view_record, subject_to_view, record_to_view, FormMode.VIEW)

        # Edit
        record_override = resolve(hooks.record_to_edit)
        subject_override = resolve(hooks.subject_to_edit)
        do_edit_record = record_override is not None or hooks.do_edit_record
        do_edit_subject = subject_override is not None or hooks.do_edit_subject
        if do_edit_record or do_edit_subject:
            record_to_edit = record_override if record_override is not None else record_to_view
            subject_to_edit = subject_override if subject_override is not None else subject_to_view
            self._advance(sm, ScenarioPhase.EDIT)
            report.phases_run.append(ScenarioPhase.EDIT)
            rendered = self._render(sm, hooks, definition, hooks.edit, subject_to_edit, record_to_edit, FormMode.EDIT)
            params = synthesize(rendered.markup)
            self._populate(hooks.edit, rendered, params)
            if len(params) > 0:
                report.edit_result = self._submit(sm, hooks.edit, rendered, params)

        self._advance(sm, ScenarioPhase.COMPLETED)

    def _loader(self, hooks: ScenarioHooks) -> DefinitionLoader:
        loader = self.settings.definition_loader()
        if hooks.definitions_path is not None:
            loader.root = hooks.definitions_path
        return loader

    def _entry_subject(self, hooks: ScenarioHooks) -> Any:
        if hooks.subject is USE_DEFAULT_SUBJECT:
            return self.store.get_subject(self.settings.default_subject_id)
        return resolve(hooks.subject)

    def _render(
        self,
        sm: ScenarioStateMachine,
        hooks: ScenarioHooks,
        definition: FormDefinition,
        phase_hooks: PhaseHooks,
        subject: Any,
        record: Any,
        mode: FormMode,
    ) -> RenderedForm:
        markup, session = self.renderer.render(subject, record, mode, definition, dict(hooks.session_attributes))
        rendered = RenderedForm(markup=markup, session=session, mode=mode, subject=subject, record=record)
        self._record(sm, EventType.FORM_RENDERED, {"mode": mode.value, "length": len(markup)})
        if phase_hooks.inspect_session is not None:
            phase_hooks.inspect_session(session)
        if phase_hooks.inspect_render is not None:
            phase_hooks.inspect_render(rendered)
        return rendered

    def _populate(self, phase_hooks: PhaseHooks, rendered: RenderedForm, params: SubmissionParameters) -> None:
        widgets = locate(rendered.markup, phase_hooks.labels)
        missing = [label for label in phase_hooks.labels if label not in widgets]
        if missing:
            logger.debug("Labels without a widget: %s", missing)
        if phase_hooks.populate_request is not None:
            phase_hooks.populate_request(params, widgets)

    def _submit(
        self,
        sm: ScenarioStateMachine,
        phase_hooks: PhaseHooks,
        rendered: RenderedForm,
        params: SubmissionParameters,
    ) -> SubmissionResult:
        self._record(sm, EventType.REQUEST_SUBMITTED, {"parameters": len(params)})
        result = submit(rendered.session, params, self.controller, self.store)
        if result.has_errors:
            self._record(sm, EventType.VALIDATION_FAILED, {"errors": [e.to_dict() for e in result.validation_errors]})
        else:
            self._record(sm, EventType.RECORD_SAVED, {"record_id": getattr(result.record, "record_id", None)})
        if phase_hooks.inspect_result is not None:
            phase_hooks.inspect_result(result)
        return result

    def _advance(self, sm: ScenarioStateMachine, phase: ScenarioPhase, payload: Optional[Dict[str, Any]] = None) -> None:
        sm.transition_to(phase, payload)
        self.emitter.emit(sm.get_events()[-1])

    def _record(self, sm: ScenarioStateMachine, event_type: EventType, payload: Dict[str, Any]) -> None:
        self.emitter.emit(sm.record(event_type, payload))


def run_scenario(
    hooks: ScenarioHooks,
    renderer: FormRenderer,
    controller: SubmissionController,
    store: RecordStore,
    settings: Optional[HarnessSettings] = None,
) -> ScenarioReport:
    """Run one scenario with a throwaway ScenarioRunner."""
    return ScenarioRunner(renderer, controller, store, settings=settings).run(hooks)


__all__ = [
    "ScenarioRunner",
    "ScenarioReport",
    "run_scenario",
]
