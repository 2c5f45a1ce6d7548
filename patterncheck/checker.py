"""High-level entry point wiring registry, binder, verifier and aggregator."""

from __future__ import annotations

import logging

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from patterncheck.aggregator import VerdictAggregator
from patterncheck.binding import RoleBinder
from patterncheck.configuration import CheckSettings
from patterncheck.diagnostics import DiagnosticRenderer
from patterncheck.exceptions import PatternCheckError
from patterncheck.extractors import load_fact_set
from patterncheck.facts import FactSet
from patterncheck.registry import PatternRegistry, build_default_registry
from patterncheck.types import CheckOutcome, Verdict
from patterncheck.verification import RelationshipVerifier

LOGGER = logging.getLogger(__name__)

SnippetSource = Union[FactSet, Path, str]
CheckRequest = Tuple[str, SnippetSource]


def _snippet_label(snippet: SnippetSource) -> str:
    if isinstance(snippet, FactSet):
        return snippet.name
    return Path(snippet).stem


class PatternChecker:
    """Checks snippets against registered pattern templates."""

    def __init__(
        self,
        registry: Optional[PatternRegistry] = None,
        settings: Optional[CheckSettings] = None,
        *,
        renderer: Optional[DiagnosticRenderer] = None,
    ) -> None:
        self.settings = settings or CheckSettings()
        if registry is None:
            registry = build_default_registry(
                self.settings.templates.paths,
                include_builtin=self.settings.templates.builtin,
            )
        self.registry = registry
        self.renderer = renderer or DiagnosticRenderer()
        self.binder = RoleBinder(
            candidate_cap=self.settings.binder.candidate_cap,
            powerset_limit=self.settings.binder.powerset_limit,
        )
        self.aggregator = VerdictAggregator(
            RelationshipVerifier(),
            self.renderer,
            max_bindings=self.settings.aggregator.max_bindings,
        )

    def verify(self, pattern: str, facts: FactSet) -> Verdict:
        template = self.registry.get(pattern)
        facts.validate()
        bindings = self.binder.bind(template, facts)
        verdict = self.aggregator.aggregate(template, facts, bindings)
        LOGGER.info(
            "%s on %s: %s (%d/%d rules)",
            template.name,
            facts.name,
            "pass" if verdict.passed else "fail",
            verdict.score,
            len(template.rules),
        )
        return verdict

    def verify_path(self, pattern: str, path: Path) -> Verdict:
        # Unknown patterns fail before the snippet is parsed.
        self.registry.get(pattern)
        return self.verify(pattern, load_fact_set(Path(path)))

    def check(self, pattern: str, snippet: SnippetSource) -> CheckOutcome:
        """Run one check, capturing harness errors in the outcome."""

        outcome = CheckOutcome(
            pattern=pattern, snippet=_snippet_label(snippet)
        )
        try:
            if isinstance(snippet, FactSet):
                outcome.verdict = self.verify(pattern, snippet)
            else:
                outcome.verdict = self.verify_path(pattern, Path(snippet))
        except PatternCheckError as exc:
            LOGGER.warning("%s on %s: %s", pattern, outcome.snippet, exc)
            outcome.error = exc
        return outcome

    def verify_batch(
        self,
        requests: Iterable[CheckRequest],
        workers: Optional[int] = None,
    ) -> List[CheckOutcome]:
        """Check independent (pattern, snippet) pairs in request order."""

        items: Sequence[CheckRequest] = list(requests)
        workers = workers or self.settings.batch_workers
        if workers <= 1 or len(items) <= 1:
            return [self.check(pattern, snippet) for pattern, snippet in items]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(lambda item: self.check(*item), items)
            )


__all__ = ["CheckRequest", "PatternChecker"]
