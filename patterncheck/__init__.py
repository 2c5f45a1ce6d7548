"""patterncheck package entry point."""

from .checker import PatternChecker
from .exceptions import (
    CandidateExplosionError,
    DuplicatePatternError,
    FactSourceError,
    MalformedFactSetError,
    PatternCheckError,
    TemplateConfigError,
    UnknownPatternError,
)
from .facts import CallEdge, FactSet, MemberFact, TypeFact, build_fact_set
from .registry import PatternRegistry, build_default_registry
from .types import (
    Binding,
    CheckOutcome,
    PatternTemplate,
    RelationshipRule,
    Role,
    RuleOutcome,
    Verdict,
)

__all__ = [
    "Binding",
    "CallEdge",
    "CandidateExplosionError",
    "CheckOutcome",
    "DuplicatePatternError",
    "FactSet",
    "FactSourceError",
    "MalformedFactSetError",
    "MemberFact",
    "PatternCheckError",
    "PatternChecker",
    "PatternRegistry",
    "PatternTemplate",
    "RelationshipRule",
    "Role",
    "RuleOutcome",
    "TemplateConfigError",
    "TypeFact",
    "UnknownPatternError",
    "Verdict",
    "build_default_registry",
    "build_fact_set",
]
