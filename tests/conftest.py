"""Shared fixtures for the patterncheck test-suite."""

from __future__ import annotations

import sys

from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from helpers import load_canonical_data  # noqa: E402
from patterncheck.checker import PatternChecker  # noqa: E402
from patterncheck.facts import FactSet, build_fact_set  # noqa: E402
from patterncheck.registry import (  # noqa: E402
    PatternRegistry,
    build_default_registry,
)


@pytest.fixture(scope="session")
def registry() -> PatternRegistry:
    """Builtin registry, built once per test session."""

    return build_default_registry()


@pytest.fixture()
def checker(registry: PatternRegistry) -> PatternChecker:
    return PatternChecker(registry)


@pytest.fixture()
def canonical() -> Callable[[str], FactSet]:
    """Return a loader for canonical fact fixtures by file stem."""

    def _load(stem: str) -> FactSet:
        return build_fact_set(load_canonical_data(stem))

    return _load
