"""Submission engine: feeds a parameter set through the form engine.

:func:`submit` mirrors what the web layer does with a posted form:

1. prepare the session for submission
2. validate; on any validation error return them and stop (nothing is mutated)
3. apply the submission, staging its actions on the session
4. in entry mode, a form that declares it creates a record must have staged one
5. commit the staged actions and read back the subject and its latest record

Validation errors are an ordinary result. Everything else (a
ProtocolViolation from step 4, or any failure raised by the collaborators)
propagates unchanged; nothing is retried.
"""

import logging
from typing import Any, Iterable, Optional

from formharness.errors import ProtocolViolation
from formharness.interfaces import FormSession, RecordStore, SubmissionController
from formharness.parameters import SubmissionParameters
from formharness.results import SubmissionResult
from formharness.types import FormMode

logger = logging.getLogger(__name__)


def most_recent_record(records: Iterable[Any]) -> Optional[Any]:
    """The record with the latest ``record_datetime``.

    Records without a datetime sort earliest. The sort is stable, so among
    records with equal datetimes the last one in input order wins.
    """
    ordered = sorted(records, key=_effective_key)
    return ordered[-1] if ordered else None


def _effective_key(record: Any) -> tuple:
    # None compares earliest without ever being compared to a datetime
    ts = record.record_datetime
    return (0,) if ts is None else (1, ts)


def submit(
    session: FormSession,
    parameters: SubmissionParameters,
    controller: SubmissionController,
    store: RecordStore,
) -> SubmissionResult:
    """Validate and apply ``parameters`` against ``session``.

    Raises:
        ProtocolViolation: If an entry-mode form that must create a record did not stage one
    """
    session.prepare_for_submit()

    errors = controller.validate(session, parameters)
    if errors:
        logger.warning("Submission rejected with %d validation error(s): %s", len(errors), [str(e) for e in errors])
        return SubmissionResult.rejected(errors)

    controller.apply(session, parameters)

    if session.mode == FormMode.ENTER and session.requires_record and not session.records_to_create():
        raise ProtocolViolation("This form is not going to create a record")

    controller.apply_actions(session)

    subject = session.subject
    record = None
    if subject is not None:
        record = most_recent_record(store.get_records(subject, include_voided=True))
    logger.info(
        "Submission applied for subject %s; latest record %s",
        getattr(subject, "subject_id", None),
        getattr(record, "record_id", None),
    )
    return SubmissionResult.saved(subject, record, store)


__all__ = [
    "submit",
    "most_recent_record",
]
