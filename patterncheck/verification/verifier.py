"""Relationship verifier: evaluate every template rule for one binding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from patterncheck.constants import (
    COVERAGE_TARGET,
    REASON_MISSING_EDGE,
    REASON_ORDERING,
    REASON_UNBOUND_ROLE,
)
from patterncheck.facts import FactSet
from patterncheck.types import (
    Binding,
    PatternTemplate,
    RelationshipRule,
    RuleOutcome,
)
from patterncheck.verification.base import RuleEvaluator
from patterncheck.verification.factory import build_evaluator


@dataclass(frozen=True)
class BindingEvaluation:
    """Rule outcomes for one binding."""

    binding: Binding
    outcomes: Tuple[RuleOutcome, ...]

    @property
    def score(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.satisfied)

    @property
    def complete(self) -> bool:
        return all(outcome.satisfied for outcome in self.outcomes)


class RelationshipVerifier:
    """Checks a binding against the fact graph, rule by rule.

    Rules that mention an unbound role are reported as violated without
    evaluation; the remaining rules are still checked so the diagnostics
    stay informative.
    """

    def __init__(self) -> None:
        self._evaluators: Dict[str, RuleEvaluator] = {}

    def _evaluator(self, kind: str) -> RuleEvaluator:
        evaluator = self._evaluators.get(kind)
        if evaluator is None:
            evaluator = build_evaluator(kind)
            self._evaluators[kind] = evaluator
        return evaluator

    def verify(
        self, template: PatternTemplate, facts: FactSet, binding: Binding
    ) -> BindingEvaluation:
        outcomes = tuple(
            self.check_rule(rule, facts, binding) for rule in template.rules
        )
        return BindingEvaluation(binding=binding, outcomes=outcomes)

    def check_rule(
        self, rule: RelationshipRule, facts: FactSet, binding: Binding
    ) -> RuleOutcome:
        unbound = [role for role in rule.roles if not binding.is_bound(role)]
        if unbound:
            return RuleOutcome(
                rule=rule,
                satisfied=False,
                reason=REASON_UNBOUND_ROLE,
                detail=", ".join(unbound),
            )
        evaluator = self._evaluator(rule.kind)
        sources = binding.types_for(rule.source)
        targets = binding.types_for(rule.target)
        ordering_types: Tuple[str, ...] = ()
        if rule.ordering is not None and rule.ordering.other:
            ordering_types = binding.types_for(rule.ordering.other)

        if rule.coverage == COVERAGE_TARGET:
            outer, inner = targets, sources
        else:
            outer, inner = sources, targets

        for outer_type in outer:
            reasons = set()
            for inner_type in inner:
                if rule.coverage == COVERAGE_TARGET:
                    source, target = inner_type, outer_type
                else:
                    source, target = outer_type, inner_type
                result = evaluator.check(
                    facts,
                    source,
                    target,
                    rule=rule,
                    ordering_types=ordering_types,
                )
                if result is None:
                    break
                reasons.add(result)
            else:
                # An ordering failure means the edge exists; report it over
                # a plain missing edge.
                reason = (
                    REASON_ORDERING
                    if REASON_ORDERING in reasons
                    else REASON_MISSING_EDGE
                )
                return RuleOutcome(
                    rule=rule,
                    satisfied=False,
                    reason=reason,
                    detail=outer_type,
                )
        return RuleOutcome(rule=rule, satisfied=True)


__all__ = ["BindingEvaluation", "RelationshipVerifier"]
