"""Member-shape matching used by role capability predicates."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from patterncheck.constants import (
    MEMBER_METHOD,
    RETURNS_ANY,
    RETURNS_OBJECT,
    RETURNS_SELF,
    VISIBILITY_PUBLIC,
)
from patterncheck.facts import FactSet, MemberFact, TypeFact
from patterncheck.types import MemberShape


def shape_matches(
    facts: FactSet, owner: str, member: MemberFact, shape: MemberShape
) -> bool:
    """Return True when ``member`` of ``owner`` has the requested shape."""

    if member.kind != shape.kind or member.visibility != shape.visibility:
        return False
    if shape.static is not None and member.static != shape.static:
        return False
    if shape.arity is not None and member.arity != shape.arity:
        return False
    if shape.returns == RETURNS_ANY:
        return True
    category = facts.return_category(owner, member)
    if shape.returns == RETURNS_OBJECT:
        return category in (RETURNS_OBJECT, RETURNS_SELF)
    return category == shape.returns


def covers(
    facts: FactSet, type_fact: TypeFact, shapes: Sequence[MemberShape]
) -> bool:
    """Check that distinct members of ``type_fact`` satisfy every shape.

    Each shape consumes its own member, so two required methods of arity
    zero need two such methods on the type. Solved as a bipartite matching
    with augmenting paths.
    """

    if not shapes:
        return True
    members = list(type_fact.members)
    options: List[List[int]] = [
        [
            index
            for index, member in enumerate(members)
            if shape_matches(facts, type_fact.name, member, shape)
        ]
        for shape in shapes
    ]
    if any(not choices for choices in options):
        return False
    owner_of: Dict[int, int] = {}

    def assign(shape_index: int, seen: set[int]) -> bool:
        for member_index in options[shape_index]:
            if member_index in seen:
                continue
            seen.add(member_index)
            holder: Optional[int] = owner_of.get(member_index)
            if holder is None or assign(holder, seen):
                owner_of[member_index] = shape_index
                return True
        return False

    return all(assign(index, set()) for index in range(len(shapes)))


def public_method_shapes(facts: FactSet, type_name: str) -> List[MemberShape]:
    """Describe the public methods of a type as capability shapes."""

    fact = facts.get(type_name)
    if fact is None:
        return []
    shapes: List[MemberShape] = []
    for member in fact.methods():
        category = facts.return_category(type_name, member)
        if category == RETURNS_SELF:
            category = RETURNS_OBJECT
        shapes.append(
            MemberShape(
                kind=MEMBER_METHOD,
                arity=member.arity,
                returns=category,
                visibility=VISIBILITY_PUBLIC,
            )
        )
    return shapes


__all__ = ["shape_matches", "covers", "public_method_shapes"]
