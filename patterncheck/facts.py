"""Normalized structural facts extracted from one code sample."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from patterncheck.constants import (
    EDGE_CALL,
    EDGE_NEW,
    MEMBER_CONSTRUCTOR,
    MEMBER_FIELD,
    MEMBER_METHOD,
    RETURNS_NONE,
    RETURNS_OBJECT,
    RETURNS_SELF,
    RETURNS_VALUE,
    VISIBILITY_PRIVATE,
    VISIBILITY_PROTECTED,
    VISIBILITY_PUBLIC,
)
from patterncheck.exceptions import MalformedFactSetError

_VOID_NAMES = {"void", "none", "unit", "()", "nil"}
_MEMBER_KINDS = {MEMBER_METHOD, MEMBER_CONSTRUCTOR, MEMBER_FIELD}
_VISIBILITIES = {VISIBILITY_PUBLIC, VISIBILITY_PROTECTED, VISIBILITY_PRIVATE}


@dataclass(frozen=True)
class CallEdge:
    """One observed call (or construction) inside a member body."""

    callee_type: str
    callee_member: Optional[str] = None
    kind: str = EDGE_CALL

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.callee_type, "kind": self.kind}
        if self.callee_member:
            payload["member"] = self.callee_member
        return payload


@dataclass(frozen=True)
class MemberFact:
    """A method, constructor or field declared by a type."""

    name: str
    kind: str = MEMBER_METHOD
    params: Tuple[Optional[str], ...] = ()
    returns: Optional[str] = None
    type: Optional[str] = None
    visibility: str = VISIBILITY_PUBLIC
    static: bool = False
    abstract: bool = False
    calls: Tuple[CallEdge, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def is_callable(self) -> bool:
        return self.kind in (MEMBER_METHOD, MEMBER_CONSTRUCTOR)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "kind": self.kind}
        if self.is_callable:
            payload["params"] = list(self.params)
            payload["returns"] = self.returns
        if self.type is not None:
            payload["type"] = self.type
        if self.visibility != VISIBILITY_PUBLIC:
            payload["visibility"] = self.visibility
        if self.static:
            payload["static"] = True
        if self.abstract:
            payload["abstract"] = True
        if self.calls:
            payload["calls"] = [edge.to_dict() for edge in self.calls]
        return payload


@dataclass(frozen=True)
class TypeFact:
    """Declared type with its members and nominal/reference edges."""

    name: str
    kind: str = "class"
    supertypes: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()
    members: Tuple[MemberFact, ...] = ()

    def methods(self, *, public_only: bool = True) -> List[MemberFact]:
        return [
            member
            for member in self.members
            if member.kind == MEMBER_METHOD
            and (not public_only or member.visibility == VISIBILITY_PUBLIC)
        ]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind}
        if self.supertypes:
            payload["supertypes"] = list(self.supertypes)
        if self.references:
            payload["references"] = list(self.references)
        payload["members"] = [member.to_dict() for member in self.members]
        return payload


@dataclass(frozen=True)
class FactSet:
    """Read-only facts for one snippet, keyed by type name."""

    name: str = "snippet"
    language: str = "unknown"
    types: Dict[str, TypeFact] = field(default_factory=dict)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self.types

    def __len__(self) -> int:
        return len(self.types)

    def type_names(self) -> List[str]:
        return sorted(self.types)

    def get(self, type_name: str) -> Optional[TypeFact]:
        return self.types.get(type_name)

    def call_edges(self) -> Iterator[Tuple[str, str, CallEdge]]:
        """Yield ``(caller_type, caller_member, edge)`` in body order."""

        for type_name in self.type_names():
            for member in self.types[type_name].members:
                for edge in member.calls:
                    yield type_name, member.name, edge

    def held_types(self, type_name: str) -> set[str]:
        """Types referenced by fields, parameters or declared references."""

        fact = self.types.get(type_name)
        if fact is None:
            return set()
        held = set(fact.references)
        for member in fact.members:
            if member.type:
                held.add(member.type)
            held.update(param for param in member.params if param)
        return held

    def supertype_closure(self, type_name: str) -> set[str]:
        """Return every direct or transitive supertype of ``type_name``."""

        closure: set[str] = set()
        visiting: set[str] = set()

        def visit(name: str) -> None:
            fact = self.types.get(name)
            if fact is None:
                return
            visiting.add(name)
            for parent in fact.supertypes:
                if parent in visiting:
                    raise MalformedFactSetError(
                        f"Cyclic supertype chain through '{parent}' in "
                        f"fact set '{self.name}'"
                    )
                if parent in closure:
                    continue
                closure.add(parent)
                visit(parent)
            visiting.discard(name)

        visit(type_name)
        return closure

    def return_category(self, owner: str, member: MemberFact) -> str:
        returns = member.returns
        if returns is None or returns.strip().lower() in _VOID_NAMES:
            return RETURNS_NONE
        if returns == owner:
            return RETURNS_SELF
        if returns in self.types:
            return RETURNS_OBJECT
        return RETURNS_VALUE

    def validate(self) -> "FactSet":
        """Check the structural assumptions the verifier relies on."""

        for key, fact in self.types.items():
            if key != fact.name:
                raise MalformedFactSetError(
                    f"Type key '{key}' does not match declared name "
                    f"'{fact.name}'"
                )
            for member in fact.members:
                for edge in member.calls:
                    if edge.callee_type not in self.types:
                        raise MalformedFactSetError(
                            f"Call edge {key}.{member.name} -> "
                            f"{edge.callee_type} references an undeclared type"
                        )
        for key in self.types:
            self.supertype_closure(key)
        return self

    def without_type(self, type_name: str) -> "FactSet":
        """Copy without ``type_name`` and without the edges into it."""

        kept: Dict[str, TypeFact] = {}
        for key, fact in self.types.items():
            if key == type_name:
                continue
            members = tuple(
                MemberFact(
                    name=member.name,
                    kind=member.kind,
                    params=member.params,
                    returns=member.returns,
                    type=member.type,
                    visibility=member.visibility,
                    static=member.static,
                    abstract=member.abstract,
                    calls=tuple(
                        edge
                        for edge in member.calls
                        if edge.callee_type != type_name
                    ),
                )
                for member in fact.members
            )
            kept[key] = TypeFact(
                name=fact.name,
                kind=fact.kind,
                supertypes=fact.supertypes,
                references=fact.references,
                members=members,
            )
        return FactSet(name=self.name, language=self.language, types=kept)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "language": self.language,
            "types": {
                name: self.types[name].to_dict() for name in self.type_names()
            },
        }


def _names(value: Any, *, where: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise MalformedFactSetError(f"{where}: expected a list of names")
    return tuple(str(item) for item in value)


def _parse_param(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        value = value.get("type")
    return None if value is None else str(value)


def _parse_call(raw: Any, *, where: str) -> CallEdge:
    if isinstance(raw, str):
        type_name, _, member = raw.partition(".")
        return CallEdge(callee_type=type_name, callee_member=member or None)
    if not isinstance(raw, Mapping):
        raise MalformedFactSetError(f"{where}: call edges must be mappings")
    if "new" in raw:
        return CallEdge(callee_type=str(raw["new"]), kind=EDGE_NEW)
    if "type" not in raw:
        raise MalformedFactSetError(f"{where}: call edge missing 'type'")
    kind = str(raw.get("kind", EDGE_CALL))
    if kind not in (EDGE_CALL, EDGE_NEW):
        raise MalformedFactSetError(f"{where}: unknown call kind '{kind}'")
    member = raw.get("member")
    return CallEdge(
        callee_type=str(raw["type"]),
        callee_member=None if member is None else str(member),
        kind=kind,
    )


def _parse_member(raw: Any, *, owner: str) -> MemberFact:
    if not isinstance(raw, Mapping) or "name" not in raw:
        raise MalformedFactSetError(
            f"Type '{owner}': members must be mappings with a 'name'"
        )
    where = f"{owner}.{raw['name']}"
    kind = str(raw.get("kind", MEMBER_METHOD))
    if kind not in _MEMBER_KINDS:
        raise MalformedFactSetError(f"{where}: unknown member kind '{kind}'")
    visibility = str(raw.get("visibility", VISIBILITY_PUBLIC))
    if visibility not in _VISIBILITIES:
        raise MalformedFactSetError(
            f"{where}: unknown visibility '{visibility}'"
        )
    params_raw = raw.get("params") or []
    if not isinstance(params_raw, (list, tuple)):
        raise MalformedFactSetError(f"{where}: params must be a list")
    returns = raw.get("returns")
    field_type = raw.get("type")
    return MemberFact(
        name=str(raw["name"]),
        kind=kind,
        params=tuple(_parse_param(item) for item in params_raw),
        returns=None if returns is None else str(returns),
        type=None if field_type is None else str(field_type),
        visibility=visibility,
        static=bool(raw.get("static", False)),
        abstract=bool(raw.get("abstract", False)),
        calls=tuple(
            _parse_call(item, where=where) for item in raw.get("calls") or []
        ),
    )


def _parse_type(name: str, raw: Any) -> TypeFact:
    raw = raw or {}
    if not isinstance(raw, Mapping):
        raise MalformedFactSetError(f"Type '{name}' must be a mapping")
    members_raw = raw.get("members") or []
    if not isinstance(members_raw, (list, tuple)):
        raise MalformedFactSetError(f"Type '{name}': members must be a list")
    return TypeFact(
        name=name,
        kind=str(raw.get("kind", "class")),
        supertypes=_names(raw.get("supertypes"), where=f"{name}.supertypes"),
        references=_names(raw.get("references"), where=f"{name}.references"),
        members=tuple(_parse_member(item, owner=name) for item in members_raw),
    )


def build_fact_set(
    data: Mapping[str, Any], *, name: Optional[str] = None
) -> FactSet:
    """Build a FactSet from the dictionary form used by fact files."""

    if not isinstance(data, Mapping):
        raise MalformedFactSetError("Fact data must be a mapping")
    types_raw = data.get("types") or {}
    entries: Iterable[Tuple[str, Any]]
    if isinstance(types_raw, Mapping):
        entries = ((str(key), value) for key, value in types_raw.items())
    elif isinstance(types_raw, list):
        entries = []
        for item in types_raw:
            if not isinstance(item, Mapping) or "name" not in item:
                raise MalformedFactSetError(
                    "Type entries in list form need a 'name'"
                )
            entries.append((str(item["name"]), item))
    else:
        raise MalformedFactSetError("'types' must be a mapping or a list")

    types: Dict[str, TypeFact] = {}
    for type_name, raw in entries:
        if type_name in types:
            raise MalformedFactSetError(f"Type '{type_name}' declared twice")
        types[type_name] = _parse_type(type_name, raw)
    return FactSet(
        name=str(name or data.get("name") or "snippet"),
        language=str(data.get("language") or "unknown"),
        types=types,
    )


__all__ = [
    "CallEdge",
    "MemberFact",
    "TypeFact",
    "FactSet",
    "build_fact_set",
]
