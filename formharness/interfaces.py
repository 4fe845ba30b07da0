"""Abstract interfaces for the external form-engine collaborators.

The harness does not render forms, validate submissions or persist records.
These ABCs define the contract that a form engine must fulfil to be driven
by formharness.scenario.ScenarioRunner.

Typical integration flow::

    renderer: FormRenderer = MyEngineRenderer(...)
    controller: SubmissionController = MyEngineController(...)
    store: RecordStore = MyRecordStore(...)

    runner = ScenarioRunner(renderer, controller, store)
    runner.run(hooks)
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Sequence, Tuple

from formharness.errors import SubmissionError
from formharness.parameters import SubmissionParameters
from formharness.types import FormMode


class FormSession(ABC):
    """Live state of one rendered form, owned by the form engine.

    The session is what the submission controller validates and applies
    against; the harness only reads the attributes below.
    """

    @property
    @abstractmethod
    def mode(self) -> FormMode:
        """Mode the session was rendered in."""

    @property
    @abstractmethod
    def subject(self) -> Any:
        """Subject the form concerns (may be None before a subject-creation form is applied)."""

    @property
    @abstractmethod
    def requires_record(self) -> bool:
        """Whether the form definition declares that submitting it creates a record."""

    @abstractmethod
    def records_to_create(self) -> Sequence[Any]:
        """Records staged for creation by the last applied submission."""

    @abstractmethod
    def prepare_for_submit(self) -> None:
        """Idempotent setup before validation. Called once per submission."""


class FormRenderer(ABC):
    """Turns a form definition into markup for a subject and optional record."""

    @abstractmethod
    def render(
        self,
        subject: Any,
        record: Any,
        mode: FormMode,
        definition: Any,
        session_attributes: Mapping[str, Any],
    ) -> Tuple[str, FormSession]:
        """Render ``definition`` in ``mode``.

        Args:
            subject: The subject the form concerns, or None for subject-creation forms
            record: The existing record to show (view/edit), or None
            mode: Rendering mode
            definition: The loaded formharness.definitions.FormDefinition
            session_attributes: Opaque attributes applied to the session before rendering

        Returns:
            The markup and the session that produced it.
        """


class SubmissionController(ABC):
    """Validates and applies submissions against a rendered session."""

    @abstractmethod
    def validate(self, session: FormSession, parameters: SubmissionParameters) -> List[SubmissionError]:
        """Return validation errors in display order; an empty list means valid."""

    @abstractmethod
    def apply(self, session: FormSession, parameters: SubmissionParameters) -> None:
        """Stage the submission's actions on the session without committing them."""

    @abstractmethod
    def apply_actions(self, session: FormSession) -> None:
        """Commit the session's staged actions to the record store."""


class RecordStore(ABC):
    """Read access to persisted subjects and records."""

    @abstractmethod
    def get_subject(self, subject_id: int) -> Any:
        """Look a subject up by id, returning None if it does not exist."""

    @abstractmethod
    def get_records(self, subject: Any, include_voided: bool = False) -> List[Any]:
        """Every record of ``subject`` in store order."""

    def get_observations(self, record: Any, include_voided: bool = False) -> List[Any]:
        """Flattened observation tree of ``record``."""
        return record.all_observations(include_voided)


__all__ = [
    "FormSession",
    "FormRenderer",
    "SubmissionController",
    "RecordStore",
]
