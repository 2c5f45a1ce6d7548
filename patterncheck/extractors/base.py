"""Base fact extractor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple

from patterncheck.exceptions import FactSourceError
from patterncheck.facts import FactSet


class FactExtractor(ABC):
    """Shared contract for turning a snippet into a FactSet."""

    language_name: str = "unknown"
    suffixes: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.language_name

    @abstractmethod
    def extract(self, source: str, name: str) -> FactSet:
        """Return the normalized facts for ``source``."""

    def load(self, path: Path, *, name: Optional[str] = None) -> FactSet:
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FactSourceError(
                f"Cannot read snippet '{path}': {exc}"
            ) from exc
        return self.extract(source, name or path.stem)
