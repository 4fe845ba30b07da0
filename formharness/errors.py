"""Structured error types and exceptions for the form regression harness.

Two kinds of failure live here:

- Data classes describing *expected* failures that are returned as values:
  FieldError (a JSON Schema violation in a settings file or parameter set)
  and SubmissionError (a validation error reported by the submission
  controller for one widget).
- Exceptions for *fatal* failures that propagate to the caller unchanged:
  ProtocolViolation, DefinitionNotFound, UnsupportedValueType and
  ConfigurationError, all deriving from HarnessError.

Assertion failures are plain AssertionErrors so that they fail the test that
made the assertion rather than the harness.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class FieldError:
    """Per-field JSON Schema validation error details.

    Attributes:
        path: Dot-notation field path (e.g., "search_path.0", "log_level")
        code: Validator keyword that failed ("required", "type", "enum", ...)
        message: Human-readable error description
        expected: Optional - what was expected (type, enum values, etc.)
        received: Optional - what was actually received

    Examples:
        >>> err = FieldError(
        ...     path="default_subject_id",
        ...     code="type",
        ...     message="Field 'default_subject_id' has invalid type",
        ...     expected="integer",
        ...     received="str"
        ... )
        >>> err.path
        'default_subject_id'
    """
    path: str
    code: str
    message: str
    expected: Optional[Any] = None
    received: Optional[Any] = None


@dataclass(frozen=True)
class SubmissionError:
    """A validation error reported by the submission controller.

    Attributes:
        id: Identifier of the widget (or error slot) the error belongs to
        message: Human-readable error text as the form engine reports it

    Examples:
        >>> err = SubmissionError(id="w8", message="Required")
        >>> str(err)
        'w8 -> Required'
    """
    id: str
    message: str

    def __str__(self) -> str:
        return f"{self.id} -> {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"id": self.id, "message": self.message}


class HarnessError(Exception):
    """Base class for every fatal harness failure."""


class ProtocolViolation(HarnessError):
    """Raised when a scenario's own preconditions are violated.

    The typical case is an entry-mode form that declares it creates a record
    but whose submission staged no record for creation.
    """


class DefinitionNotFound(HarnessError, FileNotFoundError):
    """Raised when a form definition cannot be resolved by any strategy.

    Attributes:
        form_name: Logical name of the form that was looked up
        candidates: Every location that was tried, in order
    """

    def __init__(self, form_name: str, candidates: Sequence[str]):
        self.form_name = form_name
        self.candidates = list(candidates)
        super().__init__(
            f"Unable to find form definition '{form_name}' "
            f"(tried: {', '.join(self.candidates) or 'nothing'})"
        )


class UnsupportedValueType(HarnessError, TypeError):
    """Raised when the value serializer is given a shape it cannot canonicalize.

    Attributes:
        value: The offending value
    """

    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        super().__init__(
            message or f"Cannot serialize value of type {type(value).__name__}: {value!r}"
        )


class ConfigurationError(HarnessError, ValueError):
    """Raised when harness settings fail validation.

    Attributes:
        errors: Field-level details for every violation found
    """

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        self.errors = list(errors or [])
        if self.errors:
            details = "; ".join(e.message for e in self.errors)
            message = f"{message}: {details}"
        super().__init__(message)


__all__ = [
    "FieldError",
    "SubmissionError",
    "HarnessError",
    "ProtocolViolation",
    "DefinitionNotFound",
    "UnsupportedValueType",
    "ConfigurationError",
]
