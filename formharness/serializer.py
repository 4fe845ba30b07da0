"""Value serializer for the form regression harness.

Canonicalizes typed test values into the strings the form engine displays and
accepts. This is the single conversion used when building request parameters
and when comparing expected against persisted observation values, so both
sides of every comparison go through :func:`serialize`.

Serialization rules:
    None                    -> "" (the "no value" sentinel)
    bool                    -> "true" / "false"
    int, Decimal, float     -> str(value) (no numeric coercion: 5 != 5.0)
    str                     -> unchanged
    date                    -> YYYY-MM-DD
    datetime                -> YYYY-MM-DD HH:MM:SS
    Concept / Drug          -> the referenced id
    ComplexValue            -> its key
    Subject/Provider/Location -> the referenced id
    list/tuple/set          -> items serialized and joined with ","

Usage:
    >>> from datetime import date
    >>> serialize(date(2012, 1, 30))
    '2012-01-30'
    >>> serialize(parse_value("2012-01-30", ValueKind.DATE))
    '2012-01-30'
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil.parser import isoparse

from formharness.clinical import ComplexValue, Concept, Drug, Location, Provider, Subject
from formharness.errors import UnsupportedValueType
from formharness.types import ValueKind

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MULTI_VALUE_SEPARATOR = ","


def serialize(value: Any) -> str:
    """Return the canonical display string for ``value``.

    Raises:
        UnsupportedValueType: If the value's shape is not recognized
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, Concept):
        return str(value.concept_id)
    if isinstance(value, Drug):
        return str(value.drug_id)
    if isinstance(value, ComplexValue):
        return value.key
    if isinstance(value, Subject):
        return _reference_id(value, value.subject_id)
    if isinstance(value, Provider):
        return _reference_id(value, value.person_id)
    if isinstance(value, Location):
        return _reference_id(value, value.location_id)
    if isinstance(value, (list, tuple)):
        return MULTI_VALUE_SEPARATOR.join(serialize(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return MULTI_VALUE_SEPARATOR.join(sorted(serialize(v) for v in value))
    raise UnsupportedValueType(value)


def _reference_id(value: Any, ref_id: Optional[int]) -> str:
    if ref_id is None:
        raise UnsupportedValueType(
            value, f"Cannot serialize unsaved {type(value).__name__} without an id"
        )
    return str(ref_id)


def parse_value(text: Optional[str], kind: ValueKind) -> Any:
    """Parse a canonical string back into a typed value of the given kind.

    Empty text parses to None. For every kind,
    ``serialize(parse_value(serialize(v), kind)) == serialize(v)``.

    Raises:
        ValueError: If the text is not a valid rendering of ``kind``
    """
    if text is None or text == "":
        return None
    if kind == ValueKind.TEXT:
        return text
    if kind == ValueKind.NUMERIC:
        if text.lstrip("-").isdigit():
            return int(text)
        # str(float) uses a lowercase exponent and spells out inf/nan
        if "e" in text or text.lstrip("-") in ("inf", "nan"):
            return float(text)
        try:
            return Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Not a numeric value: {text!r}") from None
    if kind == ValueKind.BOOLEAN:
        if text not in ("true", "false"):
            raise ValueError(f"Not a boolean value: {text!r}")
        return text == "true"
    if kind == ValueKind.DATE:
        return isoparse(text).date()
    if kind == ValueKind.DATETIME:
        return isoparse(text).replace(tzinfo=None)
    if kind == ValueKind.CODED:
        return Concept(concept_id=int(text))
    if kind == ValueKind.DRUG:
        return Drug(drug_id=int(text))
    if kind == ValueKind.COMPLEX:
        return ComplexValue(key=text)
    raise ValueError(f"Unknown value kind: {kind!r}")


def date_as_string(value: date) -> str:
    """Format a date the way date widgets display it."""
    return value.strftime(DATE_FORMAT)


def ymd_to_date(text: str) -> datetime:
    """Parse a YYYY-MM-DD string into a midnight datetime."""
    return datetime.strptime(text, DATE_FORMAT)


def date_today_as_string() -> str:
    return date_as_string(date.today())


__all__ = [
    "serialize",
    "parse_value",
    "date_as_string",
    "ymd_to_date",
    "date_today_as_string",
    "DATE_FORMAT",
    "DATETIME_FORMAT",
]
