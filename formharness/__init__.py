"""Scenario-driven regression-test harness for clinical form engines.

formharness drives a form definition through entry, view and edit against an
external form engine, submits synthetic input at each step and gives the
test author a fluent API to check what the submission did to the clinical
record. It provides:
- Widget lookup by human-readable label
- Reconstruction of edit submissions from rendered markup
- Structured submission results with order-independent observation checks
- A phase state machine and event stream for every scenario run

Basic usage:
    >>> from formharness import PhaseHooks, ScenarioHooks, ScenarioRunner
    >>> hooks = ScenarioHooks(
    ...     form_name="vitals",
    ...     entry=PhaseHooks(
    ...         labels=("Weight:",),
    ...         populate_request=lambda params, widgets: params.set(widgets["Weight:"], 70),
    ...         inspect_result=lambda r: r.assert_no_errors().assert_obs_created(5089, 70),
    ...     ),
    ... )
    >>> ScenarioRunner(renderer, controller, store).run(hooks)  # doctest: +SKIP
"""

__version__ = "0.1.0"

VERSION = (0, 1, 0)

from formharness.hooks import PhaseHooks, RenderedForm, ScenarioHooks
from formharness.results import SubmissionResult
from formharness.scenario import ScenarioReport, ScenarioRunner, run_scenario

__all__ = [
    "__version__",
    "VERSION",
    "PhaseHooks",
    "RenderedForm",
    "ScenarioHooks",
    "ScenarioReport",
    "ScenarioRunner",
    "SubmissionResult",
    "run_scenario",
]
