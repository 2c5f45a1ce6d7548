"""Relationship evaluator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from patterncheck.facts import FactSet
from patterncheck.types import RelationshipRule


class RuleEvaluator(ABC):
    """Base contract for checking one relationship kind between two types."""

    kind: str = "unknown"

    @abstractmethod
    def check(
        self,
        facts: FactSet,
        source: str,
        target: str,
        *,
        rule: RelationshipRule,
        ordering_types: Sequence[str] = (),
    ) -> Optional[str]:
        """Return ``None`` when the edge holds, else a violation reason."""
