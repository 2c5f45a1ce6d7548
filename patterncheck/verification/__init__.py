"""Relationship verification exports."""

from patterncheck.verification.base import RuleEvaluator
from patterncheck.verification.evaluators import (
    CallEdgeEvaluator,
    DelegatesCallEvaluator,
    HoldsReferenceEvaluator,
    ImplementsCapabilityEvaluator,
    InheritsFromEvaluator,
    InstantiatesEvaluator,
)
from patterncheck.verification.factory import RULE_EVALUATORS, build_evaluator
from patterncheck.verification.verifier import (
    BindingEvaluation,
    RelationshipVerifier,
)

__all__ = [
    "RuleEvaluator",
    "CallEdgeEvaluator",
    "DelegatesCallEvaluator",
    "HoldsReferenceEvaluator",
    "ImplementsCapabilityEvaluator",
    "InheritsFromEvaluator",
    "InstantiatesEvaluator",
    "RULE_EVALUATORS",
    "build_evaluator",
    "BindingEvaluation",
    "RelationshipVerifier",
]
