"""Markup scraper: rebuilds a submission from rendered form markup.

When a form is rendered for editing, every widget shows the value currently
stored. :func:`synthesize` reads those displayed values back out of the
markup and produces the parameters a browser would submit if the user
changed nothing. Edit scenarios start from this baseline and override only
the fields under test.

Recognized widget shapes:
    <input ... name="x" ... value="v" ...>       -> x=v (one line only; no value attribute: nothing)
    <textarea ... name="x" ...>text</textarea>   -> x=text
    <select ... name="x" ...>...<option selected value="v">...</select>
                                                  -> x=v ("" if the selected
                                                     option has no value,
                                                     nothing if none selected)
    setupDatePicker(fmt, locale, display, '#x', '2012-01-30')
                                                  -> x=2012-01-30

Anything else is not scraped and so is absent from the submission, exactly
as if the author had never set it. Matching is deliberately loose and
skip-on-miss: partial matches are tolerated rather than reported.
"""

import html
import logging
import re
from typing import Iterator, Optional, Tuple

from formharness.parameters import SubmissionParameters

logger = logging.getLogger(__name__)

# Attribute lookups must not match inside longer names such as data-value
NAME_ATTR = re.compile(r'(?<![\w-])name="([^"]*)"')
VALUE_ATTR = re.compile(r'(?<![\w-])value="([^"]*)"')
SELECTED_ATTR = re.compile(r'(?<![\w-])selected(?![\w-])')
QUOTED_VALUE = re.compile(r'"[^"]*"')
MULTIPLE_ATTR = re.compile(r'(?<![\w-])multiple(?![\w-])')

# Inputs are matched on a single line; textareas and selects may span lines
INPUT_TAG = re.compile(r"<input\b[^>\n]*>", re.IGNORECASE)
TEXTAREA_TAG = re.compile(r"<textarea\b([^>]*)>(.*?)</textarea>", re.IGNORECASE | re.DOTALL)
SELECT_TAG = re.compile(r"<select\b([^>]*)>(.*?)</select>", re.IGNORECASE | re.DOTALL)
OPTION_TAG = re.compile(r"<option\b[^>]*>", re.IGNORECASE)
DATE_PICKER_CALL = re.compile(r"setupDatePicker\(.*?, .*?, .*?, '#(.+?)', '(.+?)'\)")


def _attr(pattern: "re.Pattern[str]", tag: str) -> Optional[str]:
    match = pattern.search(tag)
    return html.unescape(match.group(1)) if match else None


def scan_inputs(markup: str) -> Iterator[Tuple[str, str]]:
    """Yield (name, value) for every input tag that has both attributes."""
    for match in INPUT_TAG.finditer(markup):
        tag = match.group(0)
        name = _attr(NAME_ATTR, tag)
        value = _attr(VALUE_ATTR, tag)
        if name is not None and value is not None:
            yield name, value


def scan_textareas(markup: str) -> Iterator[Tuple[str, str]]:
    """Yield (name, inner text) for every named textarea."""
    for match in TEXTAREA_TAG.finditer(markup):
        name = _attr(NAME_ATTR, match.group(1))
        if name is not None:
            yield name, html.unescape(match.group(2))


def scan_selects(markup: str) -> Iterator[Tuple[str, str]]:
    """Yield (name, value) for the selected option(s) of every named select.

    A selected option without a value attribute yields an empty string. A
    select with no selected option yields nothing. Only a ``multiple`` select
    yields more than one pair.
    """
    for match in SELECT_TAG.finditer(markup):
        opening, body = match.group(1), match.group(2)
        name = _attr(NAME_ATTR, opening)
        if name is None:
            continue
        multiple = MULTIPLE_ATTR.search(opening) is not None
        for option in OPTION_TAG.finditer(body):
            tag = option.group(0)
            # blank out quoted attribute values so text such as label="selected one" cannot match
            if not SELECTED_ATTR.search(QUOTED_VALUE.sub('""', tag)):
                continue
            value = _attr(VALUE_ATTR, tag)
            yield name, value if value is not None else ""
            if not multiple:
                break


def scan_date_pickers(markup: str) -> Iterator[Tuple[str, str]]:
    """Yield (field id, initial date) for every date picker initialization call."""
    for match in DATE_PICKER_CALL.finditer(markup):
        yield match.group(1), match.group(2)


def synthesize(markup: str) -> SubmissionParameters:
    """Rebuild the parameters a browser would submit for ``markup`` unchanged.

    Parameters are added in shape order (inputs, textareas, selects, date
    pickers), each in document order. Repeated names accumulate values.
    """
    params = SubmissionParameters()
    for scanner in (scan_inputs, scan_textareas, scan_selects, scan_date_pickers):
        for name, value in scanner(markup):
            params.add(name, value)
    logger.debug("Synthesized %d parameters from rendered markup", len(params))
    return params


__all__ = [
    "synthesize",
    "scan_inputs",
    "scan_textareas",
    "scan_selects",
    "scan_date_pickers",
]
