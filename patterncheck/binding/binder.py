"""Role binder: enumerate candidate bindings for a template and fact set."""

from __future__ import annotations

import logging

from itertools import combinations
from typing import Dict, Iterator, List, Sequence, Tuple

from patterncheck.binding.capability import covers
from patterncheck.constants import (
    DEFAULT_CANDIDATE_CAP,
    DEFAULT_POWERSET_LIMIT,
)
from patterncheck.exceptions import CandidateExplosionError
from patterncheck.facts import FactSet
from patterncheck.types import Binding, PatternTemplate, Role

LOGGER = logging.getLogger(__name__)


class BindingSpace:
    """Lazy, restartable sequence of bindings in deterministic order.

    Roles are visited in declaration order and candidate types in lexical
    order. A type is never bound to two roles of the same binding; a role
    whose candidates are exhausted is yielded unbound so that the verifier
    can still report on the remaining rules.
    """

    def __init__(
        self,
        template: PatternTemplate,
        candidates: Dict[str, List[str]],
        *,
        powerset_limit: int,
    ) -> None:
        self.template = template
        self._candidates = {
            name: sorted(types) for name, types in candidates.items()
        }
        self._powerset_limit = powerset_limit

    @property
    def candidates(self) -> Dict[str, List[str]]:
        return {name: list(types) for name, types in self._candidates.items()}

    def __iter__(self) -> Iterator[Binding]:
        return self._walk(0, frozenset(), [])

    def _walk(
        self,
        index: int,
        used: frozenset[str],
        chosen: List[Tuple[str, Tuple[str, ...]]],
    ) -> Iterator[Binding]:
        roles = self.template.roles
        if index == len(roles):
            yield Binding(tuple(chosen))
            return
        role = roles[index]
        alternatives = list(self._alternatives(role, used)) or [()]
        for alternative in alternatives:
            chosen.append((role.name, alternative))
            yield from self._walk(index + 1, used | set(alternative), chosen)
            chosen.pop()

    def _alternatives(
        self, role: Role, used: frozenset[str]
    ) -> Iterator[Tuple[str, ...]]:
        available = [
            name
            for name in self._candidates.get(role.name, [])
            if name not in used
        ]
        if not role.is_many:
            for name in available:
                yield (name,)
            return
        if len(available) < role.min_count:
            return
        if len(available) > self._powerset_limit:
            yield tuple(available)
            return
        for size in range(len(available), role.min_count - 1, -1):
            yield from combinations(available, size)


class RoleBinder:
    """Matches fact-set types against template roles by member shape."""

    def __init__(
        self,
        *,
        candidate_cap: int = DEFAULT_CANDIDATE_CAP,
        powerset_limit: int = DEFAULT_POWERSET_LIMIT,
    ) -> None:
        self.candidate_cap = candidate_cap
        self.powerset_limit = powerset_limit

    def candidates_for(self, role: Role, facts: FactSet) -> List[str]:
        return [
            name
            for name in facts.type_names()
            if covers(facts, facts.types[name], role.members)
        ]

    def bind(self, template: PatternTemplate, facts: FactSet) -> BindingSpace:
        candidates: Dict[str, List[str]] = {}
        for role in template.roles:
            matched = self.candidates_for(role, facts)
            if role.is_many and len(matched) > self.candidate_cap:
                raise CandidateExplosionError(
                    role.name, len(matched), self.candidate_cap
                )
            candidates[role.name] = matched
            LOGGER.debug(
                "%s: role %s has %d candidate(s)",
                template.name,
                role.name,
                len(matched),
            )
        return BindingSpace(
            template, candidates, powerset_limit=self.powerset_limit
        )


def enumerate_bindings(
    template: PatternTemplate,
    facts: FactSet,
    *,
    candidate_cap: int = DEFAULT_CANDIDATE_CAP,
    powerset_limit: int = DEFAULT_POWERSET_LIMIT,
) -> Sequence[Binding]:
    """Materialize every binding; intended for tests and small fact sets."""

    binder = RoleBinder(
        candidate_cap=candidate_cap, powerset_limit=powerset_limit
    )
    return list(binder.bind(template, facts))


__all__ = ["BindingSpace", "RoleBinder", "enumerate_bindings"]
