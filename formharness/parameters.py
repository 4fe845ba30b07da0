"""Submission parameters: the request a form submission carries.

SubmissionParameters is an ordered mapping from widget name to string
values. Like an HTTP request it may hold several values for one name (for
example a hidden input paired with a checkbox). Typed values are converted
with formharness.serializer so scenario authors can pass dates, concepts and
numbers directly.

Usage:
    >>> from datetime import date
    >>> params = SubmissionParameters()
    >>> params.set("w1", date(2012, 1, 30))
    >>> params.set("w3", 70)
    >>> params.to_dict()
    {'w1': '2012-01-30', 'w3': '70'}
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from formharness.serializer import serialize


class SubmissionParameters:
    """Ordered, multi-valued widget name -> value mapping."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, List[str]] = {}
        for name, value in (initial or {}).items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> None:
        """Replace every value of ``name`` with ``value``."""
        self._values[name] = [serialize(value)]

    def add(self, name: str, value: Any) -> None:
        """Append ``value`` to the values of ``name``."""
        self._values.setdefault(name, []).append(serialize(value))

    def remove(self, name: str) -> None:
        """Drop ``name`` entirely; it will be absent from the submission."""
        self._values.pop(name, None)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of ``name``."""
        values = self._values.get(name)
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        return list(self._values.get(name, []))

    def names(self) -> List[str]:
        return list(self._values)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name, values in self._values.items():
            yield name, list(values)

    def to_dict(self) -> Dict[str, str]:
        """Single-valued view (first value per name) for logging and comparisons."""
        return {name: values[0] for name, values in self._values.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubmissionParameters):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"SubmissionParameters({self._values!r})"


__all__ = [
    "SubmissionParameters",
]
