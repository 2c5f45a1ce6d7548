"""Fact extractor registry keyed by snippet file suffix."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Type

from patterncheck.exceptions import FactSourceError
from patterncheck.extractors.base import FactExtractor
from patterncheck.extractors.factfile import FactFileExtractor
from patterncheck.extractors.python import PythonFactExtractor
from patterncheck.facts import FactSet

EXTRACTORS: Dict[str, Type[FactExtractor]] = {}


def register_extractor(
    suffix: str, extractor_cls: Type[FactExtractor]
) -> None:
    """Register a custom extractor for ``suffix`` (e.g. ``.java``)."""

    EXTRACTORS[suffix.lower()] = extractor_cls


def unregister_extractor(suffix: str) -> None:
    EXTRACTORS.pop(suffix.lower(), None)


for _cls in (FactFileExtractor, PythonFactExtractor):
    for _suffix in _cls.suffixes:
        register_extractor(_suffix, _cls)


def extractor_for(path: Path) -> FactExtractor:
    suffix = Path(path).suffix.lower()
    extractor_cls = EXTRACTORS.get(suffix)
    if extractor_cls is None:
        available = ", ".join(sorted(EXTRACTORS)) or "none"
        raise FactSourceError(
            f"No extractor for '{path}' (supported suffixes: {available})"
        )
    return extractor_cls()


def load_fact_set(path: Path, *, name: Optional[str] = None) -> FactSet:
    """Extract the FactSet for the snippet stored at ``path``."""

    path = Path(path)
    if not path.exists():
        raise FactSourceError(f"Snippet '{path}' not found.")
    return extractor_for(path).load(path, name=name)


__all__ = [
    "EXTRACTORS",
    "FactExtractor",
    "FactFileExtractor",
    "PythonFactExtractor",
    "extractor_for",
    "load_fact_set",
    "register_extractor",
    "unregister_extractor",
]
