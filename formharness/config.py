"""Harness configuration, read from environment variables or a JSON file.

All settings have defaults suitable for running a project's scenario suite
from its repository root. ``FORMHARNESS_*`` environment variables override
them, and a JSON settings file can be layered on top for suites that keep
their form definitions elsewhere.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from formharness.definitions import DEFAULT_DEFINITIONS_PATH, DEFAULT_SUFFIX, DefinitionLoader
from formharness.errors import ConfigurationError
from formharness.validation import ValidationEngine

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "definitions_path": {"type": "string"},
        "definition_suffix": {"type": "string", "pattern": r"^\.?[\w.-]*$"},
        "search_path": {"type": "array", "items": {"type": "string"}},
        "default_subject_id": {"type": "integer", "minimum": 1},
        "log_level": {"enum": LOG_LEVELS},
    },
    "additionalProperties": False,
}


@dataclass(frozen=True)
class HarnessSettings:
    """Immutable harness configuration."""

    # Form definitions: "<definitions_path><form name><definition_suffix>"
    definitions_path: str = DEFAULT_DEFINITIONS_PATH
    definition_suffix: str = DEFAULT_SUFFIX

    # Directories tried when the definition path does not exist as given
    search_path: List[str] = field(default_factory=lambda: [os.getcwd()])

    # Subject used for entry when a scenario does not supply one
    default_subject_id: int = 2

    log_level: str = "INFO"

    def definition_loader(self) -> DefinitionLoader:
        return DefinitionLoader(
            root=self.definitions_path,
            suffix=self.definition_suffix,
            search_path=self.search_path,
        )


def load_settings() -> HarnessSettings:
    """Build settings from ``FORMHARNESS_*`` environment variables."""
    raw_search_path = os.getenv("FORMHARNESS_SEARCH_PATH", "")
    search_path = [p for p in raw_search_path.split(os.pathsep) if p] or [os.getcwd()]

    raw_subject_id = os.getenv("FORMHARNESS_DEFAULT_SUBJECT_ID", "2")
    try:
        default_subject_id = int(raw_subject_id)
    except ValueError:
        raise ConfigurationError(
            f"FORMHARNESS_DEFAULT_SUBJECT_ID must be an integer, got {raw_subject_id!r}"
        ) from None

    log_level = os.getenv("FORMHARNESS_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(f"FORMHARNESS_LOG_LEVEL must be one of {LOG_LEVELS}, got {log_level!r}")

    return HarnessSettings(
        definitions_path=os.getenv("FORMHARNESS_DEFINITIONS_PATH", DEFAULT_DEFINITIONS_PATH),
        definition_suffix=os.getenv("FORMHARNESS_DEFINITION_SUFFIX", DEFAULT_SUFFIX),
        search_path=search_path,
        default_subject_id=default_subject_id,
        log_level=log_level,
    )


def load_settings_file(path: Union[str, Path], base: Optional[HarnessSettings] = None) -> HarnessSettings:
    """Overlay a JSON settings file on ``base`` (environment settings by default).

    Raises:
        ConfigurationError: If the file is not valid JSON or violates SETTINGS_SCHEMA
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e

    result = ValidationEngine(SETTINGS_SCHEMA).validate(data)
    if not result.is_valid:
        raise ConfigurationError(f"Invalid settings file {path}", result.errors)

    return replace(base or load_settings(), **data)


def configure_logging(settings: HarnessSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = [
    "HarnessSettings",
    "SETTINGS_SCHEMA",
    "load_settings",
    "load_settings_file",
    "configure_logging",
]
