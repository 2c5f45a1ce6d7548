"""Verdict aggregation over a lazily enumerated binding sequence."""

from __future__ import annotations

import logging

from dataclasses import replace
from typing import Iterable, Optional

from patterncheck.constants import DEFAULT_MAX_BINDINGS
from patterncheck.diagnostics import DiagnosticRenderer
from patterncheck.facts import FactSet
from patterncheck.types import Binding, PatternTemplate, Verdict
from patterncheck.verification import BindingEvaluation, RelationshipVerifier

LOGGER = logging.getLogger(__name__)


class VerdictAggregator:
    """Runs the verifier per binding and keeps the winner or closest one.

    The first complete binding ends the search. Otherwise the binding with
    the highest satisfied-rule count is reported; ties keep the earliest
    binding in enumeration order.
    """

    def __init__(
        self,
        verifier: Optional[RelationshipVerifier] = None,
        renderer: Optional[DiagnosticRenderer] = None,
        *,
        max_bindings: int = DEFAULT_MAX_BINDINGS,
    ) -> None:
        self.verifier = verifier or RelationshipVerifier()
        self.renderer = renderer or DiagnosticRenderer()
        self.max_bindings = max_bindings

    def aggregate(
        self,
        template: PatternTemplate,
        facts: FactSet,
        bindings: Iterable[Binding],
    ) -> Verdict:
        best: Optional[BindingEvaluation] = None
        examined = 0
        truncated = False
        for binding in bindings:
            if examined >= self.max_bindings:
                truncated = True
                break
            examined += 1
            evaluation = self.verifier.verify(template, facts, binding)
            if evaluation.complete:
                best = evaluation
                break
            if best is None or evaluation.score > best.score:
                best = evaluation

        if truncated:
            LOGGER.warning(
                "%s on %s: stopped after %d bindings",
                template.name,
                facts.name,
                examined,
            )
        return self._build_verdict(
            template, facts, best, examined=examined, truncated=truncated
        )

    def _build_verdict(
        self,
        template: PatternTemplate,
        facts: FactSet,
        best: Optional[BindingEvaluation],
        *,
        examined: int,
        truncated: bool,
    ) -> Verdict:
        if best is None:
            summary = self.renderer.summary(
                template.name,
                None,
                passed=False,
                score=0,
                total=len(template.rules),
            )
            return Verdict(
                pattern=template.name,
                snippet=facts.name,
                passed=False,
                bindings_examined=examined,
                truncated=truncated,
                diagnostics=(summary,),
            )

        binding = best.binding
        outcomes = tuple(
            replace(
                outcome,
                message=self.renderer.outcome_message(outcome, binding),
            )
            for outcome in best.outcomes
        )
        passed = best.complete
        summary = self.renderer.summary(
            template.name,
            binding,
            passed=passed,
            score=best.score,
            total=len(outcomes),
        )
        lines = [summary]
        lines.extend(
            outcome.message for outcome in outcomes if not outcome.satisfied
        )
        LOGGER.debug(
            "%s on %s: %s after %d binding(s)",
            template.name,
            facts.name,
            "pass" if passed else "fail",
            examined,
        )
        return Verdict(
            pattern=template.name,
            snippet=facts.name,
            passed=passed,
            binding=binding,
            outcomes=outcomes,
            bindings_examined=examined,
            truncated=truncated,
            diagnostics=tuple(lines),
        )


__all__ = ["VerdictAggregator"]
