"""Core dataclasses used throughout the verification harness."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from patterncheck.constants import (
    CALL_EDGE_KINDS,
    CATEGORIES,
    COVERAGE_SOURCE,
    COVERAGE_TARGET,
    MEMBER_METHOD,
    MULTIPLICITY_MANY,
    MULTIPLICITY_ONE,
    ORDER_BEFORE,
    ORDER_FIRST,
    ORDER_LAST,
    RELATIONSHIP_KINDS,
    RETURNS_ANY,
    RETURNS_NONE,
    RETURNS_OBJECT,
    RETURNS_SELF,
    RETURNS_VALUE,
    VISIBILITY_PUBLIC,
)
from patterncheck.exceptions import TemplateConfigError

if TYPE_CHECKING:  # pragma: no cover
    from patterncheck.exceptions import PatternCheckError

_RETURN_CATEGORIES = (
    RETURNS_ANY,
    RETURNS_NONE,
    RETURNS_VALUE,
    RETURNS_OBJECT,
    RETURNS_SELF,
)


@dataclass(frozen=True)
class MemberShape:
    """Shape a role member must have; member names are never compared."""

    kind: str = MEMBER_METHOD
    arity: Optional[int] = None
    returns: str = RETURNS_ANY
    visibility: str = VISIBILITY_PUBLIC
    static: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.returns not in _RETURN_CATEGORIES:
            raise TemplateConfigError(
                f"Unknown return category '{self.returns}'"
            )

    def describe(self) -> str:
        arity = "any arity" if self.arity is None else f"arity {self.arity}"
        parts = [f"{self.visibility} {self.kind}", arity]
        if self.returns != RETURNS_ANY:
            parts.append(f"returning {self.returns}")
        if self.static:
            parts.append("static")
        return ", ".join(parts)


@dataclass(frozen=True)
class Role:
    """A named participant slot of a pattern template."""

    name: str
    multiplicity: str = MULTIPLICITY_ONE
    members: Tuple[MemberShape, ...] = ()
    min_count: int = 1
    description: str = ""

    def __post_init__(self) -> None:
        if self.multiplicity not in (MULTIPLICITY_ONE, MULTIPLICITY_MANY):
            raise TemplateConfigError(
                f"Role '{self.name}' has unknown multiplicity "
                f"'{self.multiplicity}'"
            )
        if self.min_count < 1:
            raise TemplateConfigError(
                f"Role '{self.name}' needs min_count >= 1"
            )
        if self.multiplicity == MULTIPLICITY_ONE and self.min_count != 1:
            raise TemplateConfigError(
                f"Role '{self.name}' binds exactly one type; "
                "min_count does not apply"
            )

    @property
    def is_many(self) -> bool:
        return self.multiplicity == MULTIPLICITY_MANY


@dataclass(frozen=True)
class OrderingConstraint:
    """Relative position of a call edge inside the caller member body."""

    position: str = ORDER_FIRST
    other: Optional[str] = None

    def __post_init__(self) -> None:
        if self.position not in (ORDER_FIRST, ORDER_LAST, ORDER_BEFORE):
            raise TemplateConfigError(
                f"Unknown ordering position '{self.position}'"
            )
        if self.position == ORDER_BEFORE and not self.other:
            raise TemplateConfigError(
                "Ordering 'before' requires the 'other' role"
            )

    def describe(self) -> str:
        if self.position == ORDER_BEFORE:
            return f"before any call to {self.other}"
        return f"as the {self.position} call of the member body"


@dataclass(frozen=True)
class RelationshipRule:
    """Typed edge between two roles."""

    kind: str
    source: str
    target: str
    ordering: Optional[OrderingConstraint] = None
    coverage: str = COVERAGE_SOURCE

    def __post_init__(self) -> None:
        if self.kind not in RELATIONSHIP_KINDS:
            raise TemplateConfigError(
                f"Unknown relationship kind '{self.kind}'"
            )
        if self.ordering is not None and self.kind not in CALL_EDGE_KINDS:
            raise TemplateConfigError(
                f"Ordering constraints only apply to call edges, "
                f"not '{self.kind}'"
            )
        if self.coverage not in (COVERAGE_SOURCE, COVERAGE_TARGET):
            raise TemplateConfigError(
                f"Unknown rule coverage '{self.coverage}'"
            )

    @property
    def label(self) -> str:
        return f"{self.kind}({self.source},{self.target})"

    @property
    def roles(self) -> Tuple[str, ...]:
        names = [self.source, self.target]
        if self.ordering is not None and self.ordering.other:
            names.append(self.ordering.other)
        return tuple(dict.fromkeys(names))


@dataclass(frozen=True)
class PatternTemplate:
    """Structural contract for one design pattern."""

    name: str
    category: str
    roles: Tuple[Role, ...]
    rules: Tuple[RelationshipRule, ...]
    aliases: Tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:
        self.validate()

    def role(self, name: str) -> Role:
        for role in self.roles:
            if role.name == name:
                return role
        raise KeyError(name)

    @property
    def role_names(self) -> Tuple[str, ...]:
        return tuple(role.name for role in self.roles)

    def validate(self) -> None:
        if self.category not in CATEGORIES:
            raise TemplateConfigError(
                f"Pattern '{self.name}' has unknown category "
                f"'{self.category}'"
            )
        if not self.roles:
            raise TemplateConfigError(f"Pattern '{self.name}' has no roles")
        names = self.role_names
        if len(set(names)) != len(names):
            raise TemplateConfigError(
                f"Pattern '{self.name}' declares a role twice"
            )
        mentioned: set[str] = set()
        for rule in self.rules:
            for role_name in rule.roles:
                if role_name not in names:
                    raise TemplateConfigError(
                        f"Pattern '{self.name}': rule {rule.label} "
                        f"references undeclared role '{role_name}'"
                    )
                mentioned.add(role_name)
        # Unconstrained roles could stay unbound in a passing binding.
        orphans = [name for name in names if name not in mentioned]
        if orphans:
            raise TemplateConfigError(
                f"Pattern '{self.name}': roles {', '.join(orphans)} "
                "appear in no rule"
            )


@dataclass(frozen=True)
class Binding:
    """Candidate assignment of concrete types to template roles."""

    assignments: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def types_for(self, role: str) -> Tuple[str, ...]:
        for name, types in self.assignments:
            if name == role:
                return types
        return ()

    def is_bound(self, role: str) -> bool:
        return bool(self.types_for(role))

    @property
    def unbound_roles(self) -> Tuple[str, ...]:
        return tuple(name for name, types in self.assignments if not types)

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(types) for name, types in self.assignments}

    def __str__(self) -> str:
        parts = []
        for name, types in self.assignments:
            bound = ", ".join(types) if types else "<unbound>"
            parts.append(f"{name}->{bound}")
        return "{" + "; ".join(parts) + "}"


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating one rule against one binding."""

    rule: RelationshipRule
    satisfied: bool
    reason: Optional[str] = None
    detail: str = ""
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule.label,
            "satisfied": self.satisfied,
            "reason": self.reason,
            "message": self.message,
        }


@dataclass(frozen=True)
class Verdict:
    """Pass/fail result plus diagnostics for one (pattern, snippet) check."""

    pattern: str
    snippet: str
    passed: bool
    binding: Optional[Binding] = None
    outcomes: Tuple[RuleOutcome, ...] = ()
    bindings_examined: int = 0
    truncated: bool = False
    diagnostics: Tuple[str, ...] = ()

    @property
    def score(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.satisfied)

    @property
    def satisfied(self) -> Tuple[RelationshipRule, ...]:
        return tuple(o.rule for o in self.outcomes if o.satisfied)

    @property
    def violated(self) -> Tuple[RelationshipRule, ...]:
        return tuple(o.rule for o in self.outcomes if not o.satisfied)

    @property
    def violated_labels(self) -> List[str]:
        return [rule.label for rule in self.violated]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "snippet": self.snippet,
            "passed": self.passed,
            "score": self.score,
            "rules": len(self.outcomes),
            "binding": self.binding.as_dict() if self.binding else None,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "bindings_examined": self.bindings_examined,
            "truncated": self.truncated,
            "diagnostics": list(self.diagnostics),
        }


@dataclass
class CheckOutcome:
    """Per-snippet batch result: a verdict or the error that prevented one."""

    pattern: str
    snippet: str
    verdict: Optional[Verdict] = None
    error: Optional["PatternCheckError"] = None

    @property
    def passed(self) -> bool:
        return self.verdict is not None and self.verdict.passed

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "pattern": self.pattern,
            "snippet": self.snippet,
        }
        if self.verdict is not None:
            payload["verdict"] = self.verdict.to_dict()
        if self.error is not None:
            payload["error"] = {
                "kind": self.error.kind,
                "message": str(self.error),
            }
        return payload


__all__ = [
    "MemberShape",
    "Role",
    "OrderingConstraint",
    "RelationshipRule",
    "PatternTemplate",
    "Binding",
    "RuleOutcome",
    "Verdict",
    "CheckOutcome",
]
