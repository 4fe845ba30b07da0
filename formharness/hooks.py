"""Scenario hook bundles.

A scenario is configured with a ScenarioHooks value: the form to run, the
optional overrides that switch on the view and edit phases, and one
PhaseHooks per phase holding the callbacks the author cares about. Every
callback defaults to None, meaning "do nothing at this checkpoint", so a
scenario only spells out what it tests.

Example::

    def fill(params, widgets):
        params.set(widgets["Date:"], date(2012, 1, 30))
        params.set(widgets["Weight:"], 70)

    hooks = ScenarioHooks(
        form_name="vitals",
        entry=PhaseHooks(
            labels=("Date:", "Weight:"),
            populate_request=fill,
            inspect_result=lambda r: r.assert_no_errors().assert_obs_created(5089, 70),
        ),
    )
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from formharness.interfaces import FormSession
from formharness.parameters import SubmissionParameters
from formharness.results import SubmissionResult
from formharness.types import FormMode


@dataclass(frozen=True)
class RenderedForm:
    """Markup produced for one (subject, record, mode) plus the session behind it.

    A RenderedForm belongs to the phase that rendered it and is never reused
    by a later phase.
    """
    markup: str
    session: FormSession
    mode: FormMode
    subject: Any = None
    record: Any = None


SessionHook = Callable[[FormSession], None]
RenderHook = Callable[[RenderedForm], None]
RequestHook = Callable[[SubmissionParameters, Dict[str, str]], None]
ResultHook = Callable[[SubmissionResult], None]


@dataclass(frozen=True)
class PhaseHooks:
    """Callbacks for one phase.

    Attributes:
        labels: Labels of widgets to locate in the rendering (``"Label!!N"`` allowed)
        inspect_session: Called with the live session right after rendering
        inspect_render: Called with the RenderedForm before anything is submitted
        populate_request: Fills the request; receives the located label -> widget map
        inspect_result: Called with the SubmissionResult if a submission happened
    """
    labels: Sequence[str] = ()
    inspect_session: Optional[SessionHook] = None
    inspect_render: Optional[RenderHook] = None
    populate_request: Optional[RequestHook] = None
    inspect_result: Optional[ResultHook] = None

    def __post_init__(self):
        object.__setattr__(self, "labels", tuple(self.labels))


class _DefaultSubject:
    def __repr__(self) -> str:
        return "USE_DEFAULT_SUBJECT"


USE_DEFAULT_SUBJECT = _DefaultSubject()
"""Marker for "enter the form for the configured default subject"."""


@dataclass(frozen=True)
class ScenarioHooks:
    """Everything a scenario author supplies for one run.

    Overrides (``subject``, ``subject_to_view``, ``record_to_view``,
    ``subject_to_edit``, ``record_to_edit``) may be given as values or as
    zero-argument callables that are called when their phase is reached.
    A non-None override also switches its phase on, just like the matching
    ``do_*`` flag.

    Attributes:
        form_name: Logical name of the form definition to load
        subject: Subject to enter the form for; None for subject-creation forms
        entry: Hooks for entering the blank form
        view_subject: Hooks for viewing the subject without a record
        view_record: Hooks for viewing the record
        edit: Hooks for editing the record
        session_attributes: Passed to the renderer for every phase
        definitions_path: Overrides HarnessSettings.definitions_path for this scenario
    """
    form_name: str
    subject: Any = USE_DEFAULT_SUBJECT
    entry: PhaseHooks = field(default_factory=PhaseHooks)
    view_subject: PhaseHooks = field(default_factory=PhaseHooks)
    view_record: PhaseHooks = field(default_factory=PhaseHooks)
    edit: PhaseHooks = field(default_factory=PhaseHooks)
    subject_to_view: Any = None
    do_view_subject: bool = False
    record_to_view: Any = None
    do_view_record: bool = False
    subject_to_edit: Any = None
    do_edit_subject: bool = False
    record_to_edit: Any = None
    do_edit_record: bool = False
    session_attributes: Mapping[str, Any] = field(default_factory=dict)
    definitions_path: Optional[str] = None


def resolve(override: Any) -> Any:
    """Call ``override`` if it is a zero-argument factory, else return it as is."""
    return override() if callable(override) else override


__all__ = [
    "RenderedForm",
    "PhaseHooks",
    "ScenarioHooks",
    "USE_DEFAULT_SUBJECT",
    "resolve",
]
