"""Widget locator: maps human-readable labels to generated widget names.

Scenario authors refer to widgets by the text printed before them ("Weight:")
rather than by the identifiers the form engine generates ("w7"). A label may
carry an ordinal skip suffix, ``"Label!!N"``, meaning "the (N+1)-th widget
following this label", e.g. ``"Provider and role!!1"`` is the second widget
after "Provider and role".

Lookup is best-effort. A label whose text does not occur in the markup, or
whose widget scan runs past the end of the document, is silently left out of
the returned mapping; it is never an error. Scenarios rely on this to stay
short and assert on absence separately when they care.

Usage:
    >>> markup = 'Weight: <input type="text" name="w7" value="42"/>'
    >>> locate(markup, ["Weight:"])
    {'Weight:': 'w7'}
"""

import logging
import re
from typing import Dict, Iterable, Tuple

logger = logging.getLogger(__name__)

ORDINAL_MARKER = "!!"

# Generated widget identifiers always start with "w" (w1, w2, ...)
WIDGET_NAME_PATTERN = re.compile(r'name="(w[^"]*)"')


def split_label(label: str) -> Tuple[str, int]:
    """Split ``"Label!!N"`` into its base label and zero-based skip count.

    The marker is only honoured after the first character, so a label that
    starts with ``!!`` is taken literally. Text after a second marker is
    ignored (``"A!!1!!2"`` skips one widget).

    Raises:
        ValueError: If the text after the marker is not an integer
    """
    if label.find(ORDINAL_MARKER) > 0:
        base, skip = label.split(ORDINAL_MARKER)[:2]
        return base, int(skip)
    return label, 0


def locate(markup: str, labels: Iterable[str]) -> Dict[str, str]:
    """Find the widget name following each label in ``markup``.

    Args:
        markup: Rendered form markup
        labels: Label tokens, optionally suffixed with ``!!N``

    Returns:
        Mapping from each label that could be resolved (keyed exactly as
        given, suffix included) to its widget name. Unresolved labels are
        omitted.
    """
    widgets: Dict[str, str] = {}
    for label in labels:
        base, skip = split_label(label)
        index = markup.find(base)
        if index < 0:
            logger.debug("Label %r not found in markup", base)
            continue
        matches = WIDGET_NAME_PATTERN.finditer(markup, index)
        match = None
        for _ in range(skip + 1):
            match = next(matches, None)
            if match is None:
                break
        if match is None:
            logger.debug("No widget #%d after label %r", skip + 1, base)
            continue
        widgets[label] = match.group(1)
    return widgets


__all__ = [
    "locate",
    "split_label",
    "ORDINAL_MARKER",
]
