"""Scenario tests: full runs of the harness against the in-memory form engine.

Tests cover:
- Entry, view and edit phases, and how their subject/record thread through
- Skipping submission when the author sets no parameters
- Protocol violations and hook failures aborting the run
- Observation groups across entry and edit
- Overrides, default subject and session attributes
- The event stream of a run
"""

from datetime import date, datetime
from pathlib import Path

import pytest

from formharness import PhaseHooks, ScenarioHooks, run_scenario
from formharness.clinical import Concept
from formharness.config import HarnessSettings
from formharness.errors import DefinitionNotFound, ProtocolViolation
from formharness.events import EventEmitter
from formharness.scenario import ScenarioRunner
from formharness.types import EventType, FormMode, ScenarioPhase
from tests.fakes import build_engine

FORMS_DIR = Path(__file__).resolve().parent / "forms"

VITALS_LABELS = ("Date:", "Location:", "Provider:", "Weight:", "Smoker:")


def fill_vitals(params, widgets):
    params.set(widgets["Date:"], date(2012, 1, 30))
    params.set(widgets["Location:"], 2)
    params.set(widgets["Provider:"], 502)
    params.set(widgets["Weight:"], 70)
    params.set(widgets["Smoker:"], Concept(1065))


def enter_vitals(engine, runner):
    """Create one vitals record and return it."""
    report = runner.run(
        ScenarioHooks(form_name="vitals", entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals))
    )
    return report.entry_result.record


class TestFullLifecycle:
    """Test entry, view and edit in one run."""

    def test_enter_view_and_edit(self, engine, runner):
        seen = {}

        def check_entry(result):
            result.assert_no_errors().assert_record_created()
            result.assert_provider(502).assert_location(2).assert_record_type(1)
            result.assert_record_datetime(datetime(2012, 1, 30))
            result.assert_obs_created_count(2)
            result.assert_obs_created(5089, 70).assert_obs_created(1000, Concept(1065))

        def check_view(rendered):
            seen["view"] = rendered
            assert '<span class="value">70</span>' in rendered.markup
            assert "<input" not in rendered.markup

        def change_weight(params, widgets):
            seen["baseline"] = params.to_dict()
            params.set(widgets["Weight:"], 72)

        def check_edit(result):
            result.assert_no_errors().assert_record_edited()
            result.assert_obs_created(5089, 72).assert_obs_voided(5089, 70)
            result.assert_obs_created(1000, Concept(1065))
            result.assert_provider(502).assert_location(2)
            result.assert_obs_created_count(2)

        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals, inspect_result=check_entry),
            view_record=PhaseHooks(inspect_render=check_view),
            edit=PhaseHooks(labels=("Weight:",), populate_request=change_weight, inspect_result=check_edit),
            do_view_record=True,
            do_edit_record=True,
        ))

        assert report.phase == ScenarioPhase.COMPLETED
        assert report.phases_run == [ScenarioPhase.ENTRY, ScenarioPhase.VIEW_RECORD, ScenarioPhase.EDIT]
        assert report.entry_result.record is report.edit_result.record
        assert seen["view"].mode == FormMode.VIEW
        assert seen["view"].record is report.entry_result.record
        assert seen["baseline"] == {
            "w4": "70",
            "w5": "",
            "w2": "2",
            "w3": "502",
            "w6": "1065",
            "w1": "2012-01-30",
        }
        assert len(engine.store.records) == 1

    def test_edit_without_changes_resubmits_displayed_values(self, engine, runner):
        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals),
            edit=PhaseHooks(inspect_result=lambda r: r.assert_no_errors().assert_obs_created(5089, 70)),
            do_edit_record=True,
        ))
        assert not any(o.voided for o in report.edit_result.record.all_observations(include_voided=True))

    def test_only_entry_runs_by_default(self, engine, runner):
        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals),
        ))
        assert report.phases_run == [ScenarioPhase.ENTRY]
        assert [mode for mode, _, _ in engine.renderer.renders] == [FormMode.ENTER]


class TestEntryGuards:
    """Test when entry submits and when it must not."""

    def test_empty_request_is_not_submitted(self, engine, runner):
        results = []
        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, inspect_result=results.append),
        ))
        assert results == []
        assert report.entry_result is None
        assert engine.controller.submitted == []
        assert engine.store.records == []

    def test_populate_leaving_request_empty(self, engine, runner):
        results = []
        runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(populate_request=lambda params, widgets: None, inspect_result=results.append),
        ))
        assert results == []

    def test_protocol_violation_before_result_hook(self, settings):
        engine = build_engine(stage_records=False)
        emitter = EventEmitter()
        events = []
        emitter.on_any(events.append)
        runner = ScenarioRunner(engine.renderer, engine.controller, engine.store, settings=settings, emitter=emitter)
        results = []

        with pytest.raises(ProtocolViolation):
            runner.run(ScenarioHooks(
                form_name="vitals",
                entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals, inspect_result=results.append),
            ))

        assert results == []
        assert events[-1].type == EventType.SCENARIO_FAILED
        assert events[-1].payload["error"] == "ProtocolViolation"
        assert engine.store.records == []

    def test_validation_errors_reach_result_hook(self, engine, runner):
        def bad_weight(params, widgets):
            params.set(widgets["Weight:"], "heavy")

        def check(result):
            result.assert_errors(2).assert_no_record_created()
            assert [e.id for e in result.validation_errors] == ["w1", "w4"]

        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=("Weight:",), populate_request=bad_weight, inspect_result=check),
        ))
        types = [e.type for e in report.events]
        assert EventType.VALIDATION_FAILED in types
        assert EventType.RECORD_SAVED not in types

    def test_validation_failed_event_lists_errors(self, engine, runner):
        """The validation-failed event carries each error's id and message."""
        def bad_weight(params, widgets):
            params.set(widgets["Weight:"], "heavy")

        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=("Weight:",), populate_request=bad_weight),
        ))
        failed = [e for e in report.events if e.type == EventType.VALIDATION_FAILED]
        assert len(failed) == 1
        errors = failed[0].payload["errors"]
        assert [e["id"] for e in errors] == ["w1", "w4"]
        assert all(set(e) == {"id", "message"} and e["message"] for e in errors)

    def test_failing_hook_aborts_run(self, engine, runner):
        def boom(result):
            result.assert_obs_created(5089, 99)

        with pytest.raises(AssertionError, match="conceptId 5089"):
            runner.run(ScenarioHooks(
                form_name="vitals",
                entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals, inspect_result=boom),
                do_edit_record=True,
            ))
        assert [mode for mode, _, _ in engine.renderer.renders] == [FormMode.ENTER]

    def test_unknown_form(self, runner):
        with pytest.raises(DefinitionNotFound) as exc_info:
            runner.run(ScenarioHooks(form_name="does-not-exist"))
        assert exc_info.value.form_name == "does-not-exist"


class TestLabels:
    """Test label lookup inside a scenario."""

    def test_ordinal_label(self, runner):
        def fill(params, widgets):
            params.set(widgets["Date:"], date(2012, 1, 30))
            params.set(widgets["Location:!!2"], 64)

        runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(
                labels=("Date:", "Location:!!2"),
                populate_request=fill,
                inspect_result=lambda r: r.assert_obs_created(5089, 64),
            ),
        ))

    def test_unknown_labels_are_absent(self, runner):
        seen = {}

        def fill(params, widgets):
            seen.update(widgets)

        runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=("Height:", "Weight:"), populate_request=fill),
        ))
        assert seen == {"Weight:": "w4"}


class TestObsGroups:
    """Test observation groups through entry and edit."""

    def test_group_entered_and_edited(self, runner):
        def fill(params, widgets):
            params.set(widgets["Date:"], date(2012, 1, 30))
            params.set(widgets["Allergen:"], "Penicillin")
            params.set(widgets["Severe:"], Concept(1065))

        def check_entry(result):
            result.assert_no_errors()
            result.assert_obs_group_created_count(1).assert_obs_leaf_created_count(2)
            result.assert_obs_group_created(1295, (1297, Concept(1065)), (1296, "Penicillin"))

        def check_edit(result):
            result.assert_obs_group_created(1295, (1296, "Penicillin"), (1297, Concept(1066)))
            result.assert_obs_voided(1297, Concept(1065))
            with pytest.raises(AssertionError):
                result.assert_obs_group_created(1295, (1297, Concept(1065)))

        runner.run(ScenarioHooks(
            form_name="allergies",
            entry=PhaseHooks(labels=("Date:", "Allergen:", "Severe:"), populate_request=fill, inspect_result=check_entry),
            edit=PhaseHooks(
                labels=("Severe:",),
                populate_request=lambda params, widgets: params.set(widgets["Severe:"], Concept(1066)),
                inspect_result=check_edit,
            ),
            do_edit_record=True,
        ))


class TestOverrides:
    """Test subject and record overrides."""

    def test_view_subject(self, engine, runner):
        sessions = []
        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals),
            view_subject=PhaseHooks(inspect_session=sessions.append),
            do_view_subject=True,
        ))
        assert report.phases_run == [ScenarioPhase.ENTRY, ScenarioPhase.VIEW_SUBJECT]
        assert sessions[0].mode == FormMode.VIEW
        assert sessions[0].subject.subject_id == 2
        assert engine.renderer.renders[-1] == (FormMode.VIEW, sessions[0].subject, None)

    def test_record_to_view_callable(self, engine, runner):
        existing = enter_vitals(engine, runner)
        rendered = []
        runner.run(ScenarioHooks(
            form_name="vitals",
            subject_to_view=lambda: engine.store.get_subject(2),
            record_to_view=lambda: existing,
            view_record=PhaseHooks(inspect_render=rendered.append),
        ))
        assert rendered[0].record is existing
        assert rendered[0].subject.subject_id == 2
        assert "2012-01-30" in rendered[0].markup

    def test_record_to_edit_without_entry(self, engine, runner):
        existing = enter_vitals(engine, runner)

        def add_note(params, widgets):
            params.set(widgets["Notes:"], "Feels better")

        report = runner.run(ScenarioHooks(
            form_name="vitals",
            subject_to_edit=engine.store.get_subject(2),
            record_to_edit=existing,
            edit=PhaseHooks(
                labels=("Notes:",),
                populate_request=add_note,
                inspect_result=lambda r: r.assert_obs_created(161011, "Feels better").assert_obs_created(5089, 70),
            ),
        ))
        assert report.entry_result is None
        assert report.edit_result.record is existing
        assert report.phases_run == [ScenarioPhase.ENTRY, ScenarioPhase.EDIT]

    def test_default_subject_from_settings(self, settings):
        engine = build_engine()
        settings = HarnessSettings(search_path=settings.search_path, default_subject_id=7)
        report = run_scenario(
            ScenarioHooks(form_name="vitals", entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals)),
            engine.renderer,
            engine.controller,
            engine.store,
            settings=settings,
        )
        assert report.entry_result.subject.subject_id == 7
        assert report.entry_result.record.subject.subject_id == 7

    def test_form_without_subject(self, engine, runner):
        def check(result):
            result.assert_no_errors().assert_no_subject().assert_no_record_created()

        runner.run(ScenarioHooks(
            form_name="registration",
            subject=None,
            entry=PhaseHooks(
                labels=("Notes:",),
                populate_request=lambda params, widgets: params.set(widgets["Notes:"], "walk-in"),
                inspect_result=check,
            ),
        ))
        assert engine.renderer.renders[0][1] is None

    def test_session_attributes_and_definitions_path(self, engine, runner):
        rendered = []
        runner.run(ScenarioHooks(
            form_name="vitals",
            definitions_path=f"{FORMS_DIR}/",
            session_attributes={"title": "Vitals & Signs"},
            entry=PhaseHooks(inspect_render=rendered.append),
        ))
        assert rendered[0].markup.startswith("<form>\n<h1>Vitals &amp; Signs</h1>")
        assert rendered[0].session.attributes == {"title": "Vitals & Signs"}


class TestEventStream:
    """Test the events recorded and emitted for a run."""

    def test_events_of_full_run(self, settings):
        engine = build_engine()
        emitter = EventEmitter()
        emitted = []
        emitter.on_any(emitted.append)
        runner = ScenarioRunner(engine.renderer, engine.controller, engine.store, settings=settings, emitter=emitter)

        report = runner.run(ScenarioHooks(
            form_name="vitals",
            entry=PhaseHooks(labels=VITALS_LABELS, populate_request=fill_vitals),
            do_edit_record=True,
        ))

        assert [e.type for e in report.events] == [
            EventType.PHASE_STARTED,
            EventType.FORM_RENDERED,
            EventType.REQUEST_SUBMITTED,
            EventType.RECORD_SAVED,
            EventType.PHASE_STARTED,
            EventType.FORM_RENDERED,
            EventType.REQUEST_SUBMITTED,
            EventType.RECORD_SAVED,
            EventType.SCENARIO_COMPLETED,
        ]
        assert [e.event_id for e in emitted] == [e.event_id for e in report.events]
        assert all(e.scenario_id == report.scenario_id for e in report.events)
        assert report.events[0].payload == {"from_phase": "pending", "to_phase": "entry"}
        assert report.events[3].payload["record_id"] == report.entry_result.record.record_id
        assert report.events[4].phase == ScenarioPhase.EDIT
