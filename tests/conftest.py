"""Shared fixtures: an in-memory form engine and settings pointing at tests/forms/."""

from pathlib import Path

import pytest

from formharness.config import HarnessSettings
from formharness.scenario import ScenarioRunner
from tests.fakes import build_engine

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def settings():
    return HarnessSettings(search_path=[str(PROJECT_ROOT)])


@pytest.fixture
def engine():
    return build_engine()


@pytest.fixture
def runner(engine, settings):
    return ScenarioRunner(engine.renderer, engine.controller, engine.store, settings=settings)
