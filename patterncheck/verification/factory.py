# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Factory helpers for relationship evaluators."""

from __future__ import annotations

from typing import Dict, Type

from patterncheck.verification.base import RuleEvaluator
from patterncheck.verification.evaluators import (
    DelegatesCallEvaluator,
    HoldsReferenceEvaluator,
    ImplementsCapabilityEvaluator,
    InheritsFromEvaluator,
    InstantiatesEvaluator,
)

RULE_EVALUATORS: Dict[str, Type[RuleEvaluator]] = {
    cls.kind: cls
    for cls in (
        InheritsFromEvaluator,
        ImplementsCapabilityEvaluator,
        HoldsReferenceEvaluator,
        DelegatesCallEvaluator,
        InstantiatesEvaluator,
    )
}


def build_evaluator(kind: str) -> RuleEvaluator:
    """Instantiate the evaluator registered for ``kind``."""

    evaluator_cls = RULE_EVALUATORS.get(kind)
    if evaluator_cls is None:
        raise ValueError(f"Unknown relationship kind '{kind}'")
    return evaluator_cls()


__all__ = ["RULE_EVALUATORS", "build_evaluator"]
