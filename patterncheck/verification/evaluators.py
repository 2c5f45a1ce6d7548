"""Concrete relationship evaluators."""

from __future__ import annotations

from typing import List, Optional, Sequence

from patterncheck.binding.capability import covers, public_method_shapes
from patterncheck.constants import (
    EDGE_CALL,
    EDGE_NEW,
    ORDER_BEFORE,
    ORDER_FIRST,
    ORDER_LAST,
    REASON_MISSING_EDGE,
    REASON_ORDERING,
    REL_DELEGATES_CALL,
    REL_HOLDS_REFERENCE,
    REL_IMPLEMENTS_CAPABILITY,
    REL_INHERITS_FROM,
    REL_INSTANTIATES,
)
from patterncheck.facts import CallEdge, FactSet
from patterncheck.types import OrderingConstraint, RelationshipRule
from patterncheck.verification.base import RuleEvaluator


class InheritsFromEvaluator(RuleEvaluator):
    """Nominal supertype edge, direct or transitive."""

    kind = REL_INHERITS_FROM

    def check(
        self,
        facts: FactSet,
        source: str,
        target: str,
        *,
        rule: RelationshipRule,
        ordering_types: Sequence[str] = (),
    ) -> Optional[str]:  # noqa: ARG002
        if target in facts.supertype_closure(source):
            return None
        return REASON_MISSING_EDGE


class ImplementsCapabilityEvaluator(RuleEvaluator):
    """Structural conformance: the source offers every public method shape
    of the target, with or without a declared supertype edge."""

    kind = REL_IMPLEMENTS_CAPABILITY

    def check(
        self,
        facts: FactSet,
        source: str,
        target: str,
        *,
        rule: RelationshipRule,
        ordering_types: Sequence[str] = (),
    ) -> Optional[str]:  # noqa: ARG002
        if target in facts.supertype_closure(source):
            return None
        source_fact = facts.get(source)
        if source_fact is None:
            return REASON_MISSING_EDGE
        if covers(facts, source_fact, public_method_shapes(facts, target)):
            return None
        return REASON_MISSING_EDGE


class HoldsReferenceEvaluator(RuleEvaluator):
    """A field, parameter or declared reference typed as the target."""

    kind = REL_HOLDS_REFERENCE

    def check(
        self,
        facts: FactSet,
        source: str,
        target: str,
        *,
        rule: RelationshipRule,
        ordering_types: Sequence[str] = (),
    ) -> Optional[str]:  # noqa: ARG002
        if target in facts.held_types(source):
            return None
        return REASON_MISSING_EDGE


class CallEdgeEvaluator(RuleEvaluator):
    """Shared logic for rules backed by recorded call edges."""

    edge_kind: str = EDGE_CALL

    def check(
        self,
        facts: FactSet,
        source: str,
        target: str,
        *,
        rule: RelationshipRule,
        ordering_types: Sequence[str] = (),
    ) -> Optional[str]:
        fact = facts.get(source)
        if fact is None:
            return REASON_MISSING_EDGE
        found = False
        for member in fact.members:
            edges = list(member.calls)
            hits = [
                index
                for index, edge in enumerate(edges)
                if self._matches(edge, target)
            ]
            if not hits:
                continue
            found = True
            if rule.ordering is None or _ordered(
                rule.ordering, edges, hits, ordering_types
            ):
                return None
        return REASON_ORDERING if found else REASON_MISSING_EDGE

    def _matches(self, edge: CallEdge, target: str) -> bool:
        return edge.kind == self.edge_kind and edge.callee_type == target


class DelegatesCallEvaluator(CallEdgeEvaluator):
    kind = REL_DELEGATES_CALL
    edge_kind = EDGE_CALL


class InstantiatesEvaluator(CallEdgeEvaluator):
    kind = REL_INSTANTIATES
    edge_kind = EDGE_NEW


def _ordered(
    ordering: OrderingConstraint,
    edges: List[CallEdge],
    hits: List[int],
    ordering_types: Sequence[str],
) -> bool:
    if ordering.position == ORDER_FIRST:
        return hits[0] == 0
    if ordering.position == ORDER_LAST:
        return hits[-1] == len(edges) - 1
    if ordering.position == ORDER_BEFORE:
        others = [
            index
            for index, edge in enumerate(edges)
            if edge.callee_type in ordering_types and index not in hits
        ]
        return not others or hits[0] < others[0]
    return False


__all__ = [
    "InheritsFromEvaluator",
    "ImplementsCapabilityEvaluator",
    "HoldsReferenceEvaluator",
    "CallEdgeEvaluator",
    "DelegatesCallEvaluator",
    "InstantiatesEvaluator",
]
