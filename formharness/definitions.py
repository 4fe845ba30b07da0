"""Form definition loading.

A scenario names its form logically ("vitals"); the loader turns that name
into the definition payload handed to the renderer. Resolution order:

1. ``<root>/<name><suffix>`` as a direct filesystem path
2. the same relative path under each directory of the search path

If neither finds a file, DefinitionNotFound is raised listing every location
that was tried.

Usage:
    >>> loader = DefinitionLoader(root="tests/forms/")
    >>> definition = loader.load("vitals")      # doctest: +SKIP
    >>> definition.payload.startswith("<htmlform>")  # doctest: +SKIP
    True
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from formharness.errors import DefinitionNotFound

logger = logging.getLogger(__name__)

DEFAULT_DEFINITIONS_PATH = "tests/forms/"
DEFAULT_SUFFIX = ".xml"


@dataclass(frozen=True)
class FormDefinition:
    """A resolved form definition.

    Attributes:
        name: Logical form name the scenario asked for
        path: File the payload was read from
        payload: Definition text, one newline-terminated line per source line
    """
    name: str
    path: Path
    payload: str


class DefinitionLoader:
    """Resolves logical form names to FormDefinitions.

    Attributes:
        root: Prefix joined with the form name (a directory, usually with a trailing slash)
        suffix: File extension appended to the form name
        search_path: Directories tried, in order, when the direct path does not exist
    """

    def __init__(
        self,
        root: str = DEFAULT_DEFINITIONS_PATH,
        suffix: str = DEFAULT_SUFFIX,
        search_path: Optional[Sequence[Union[str, Path]]] = None,
    ) -> None:
        self.root = root
        self.suffix = suffix
        self.search_path: List[Path] = [Path(p) for p in (search_path if search_path is not None else [os.getcwd()])]

    def relative_path(self, form_name: str) -> str:
        return f"{self.root}{form_name}{self.suffix}"

    def resolve(self, form_name: str) -> Path:
        """Find the file for ``form_name``.

        Raises:
            DefinitionNotFound: If no candidate location exists
        """
        relative = self.relative_path(form_name)
        direct = Path(relative)
        candidates = [direct]
        if not direct.is_absolute():
            candidates.extend(base / relative for base in self.search_path)
        for candidate in candidates:
            if candidate.is_file():
                logger.debug("Resolved form %r to %s", form_name, candidate)
                return candidate
        raise DefinitionNotFound(form_name, [str(c) for c in candidates])

    def load(self, form_name: str) -> FormDefinition:
        path = self.resolve(form_name)
        with path.open("r", encoding="utf-8") as f:
            payload = "".join(line.rstrip("\r\n") + "\n" for line in f)
        return FormDefinition(name=form_name, path=path, payload=payload)


__all__ = [
    "FormDefinition",
    "DefinitionLoader",
    "DEFAULT_DEFINITIONS_PATH",
    "DEFAULT_SUFFIX",
]
