"""Lightweight Python fact extractor built on the standard ``ast`` module."""

from __future__ import annotations

import ast

from typing import Dict, List, Optional, Sequence, Set

from patterncheck.constants import (
    EDGE_CALL,
    EDGE_NEW,
    MEMBER_CONSTRUCTOR,
    MEMBER_FIELD,
    MEMBER_METHOD,
    VISIBILITY_PRIVATE,
    VISIBILITY_PROTECTED,
    VISIBILITY_PUBLIC,
)
from patterncheck.exceptions import FactSourceError
from patterncheck.extractors.base import FactExtractor
from patterncheck.facts import CallEdge, FactSet, MemberFact, TypeFact

_IGNORED_BASES = {"object", "ABC", "ABCMeta", "Protocol", "Generic"}
_ABSTRACT_BASES = {"ABC", "Protocol"}
_FunctionNode = (ast.FunctionDef, ast.AsyncFunctionDef)
_CONTAINERS = {
    "Deque",
    "Dict",
    "FrozenSet",
    "Iterable",
    "List",
    "Mapping",
    "MutableSequence",
    "Sequence",
    "Set",
    "Tuple",
    "deque",
    "dict",
    "frozenset",
    "list",
    "set",
    "tuple",
}
_CONTAINER_LITERALS = (
    ast.Dict,
    ast.DictComp,
    ast.List,
    ast.ListComp,
    ast.Set,
    ast.SetComp,
)


def _visibility(name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return VISIBILITY_PRIVATE
    if name.startswith("_") and not name.startswith("__"):
        return VISIBILITY_PROTECTED
    return VISIBILITY_PUBLIC


def _dotted_tail(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Subscript):
        return _dotted_tail(node.value)
    return None


def _annotation_names(node: Optional[ast.AST]) -> List[str]:
    """Names mentioned by an annotation, outermost first."""

    if node is None:
        return []
    names: List[str] = []
    for child in ast.walk(node):
        if isinstance(child, ast.Name):
            names.append(child.id)
        elif isinstance(child, ast.Attribute):
            names.append(child.attr)
        elif isinstance(child, ast.Constant) and isinstance(child.value, str):
            try:
                parsed = ast.parse(child.value, mode="eval")
            except (SyntaxError, ValueError):
                continue
            names.extend(_annotation_names(parsed.body))
    return names


def _type_name(node: Optional[ast.AST], declared: Set[str]) -> Optional[str]:
    """Normalize an annotation to one type name.

    Containers and optionals collapse to the last declared class they
    mention, so ``List[Observer]`` and ``Optional["Handler"]`` become
    ``Observer`` and ``Handler``.
    """

    if node is None:
        return None
    if isinstance(node, ast.Constant) and node.value is None:
        return None
    names = _annotation_names(node)
    known = [name for name in names if name in declared]
    if known:
        return known[-1]
    return names[0] if names else None


def _is_container(
    annotation: Optional[ast.AST], value: Optional[ast.AST]
) -> bool:
    """Whether a field holds a collection of the annotated element type."""

    if isinstance(annotation, ast.Subscript):
        return _dotted_tail(annotation.value) in _CONTAINERS
    if isinstance(value, _CONTAINER_LITERALS):
        return True
    return (
        isinstance(value, ast.Call)
        and _dotted_tail(value.func) in _CONTAINERS
    )


def _decorators(node: ast.AST) -> Set[str]:
    return {
        name
        for name in (_dotted_tail(item) for item in node.decorator_list)
        if name
    }


def _self_attribute(node: ast.AST) -> Optional[str]:
    if (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id in ("self", "cls")
    ):
        return node.attr
    return None


class _CallCollector(ast.NodeVisitor):
    """Records resolvable call edges of one method body in source order."""

    def __init__(
        self,
        owner: str,
        declared: Set[str],
        fields: Dict[str, Optional[str]],
        local_types: Dict[str, Optional[str]],
        supertypes: Sequence[str],
        containers: Optional[Set[str]] = None,
    ) -> None:
        self.owner = owner
        self.declared = declared
        self.fields = fields
        self.containers = containers or set()
        self.local_types = dict(local_types)
        self.supertypes = [name for name in supertypes if name in declared]
        self.edges: List[CallEdge] = []

    # Nested scopes have their own bodies.
    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        return None

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        return None

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        return None

    def visit_Lambda(self, node: ast.Lambda) -> None:
        return None

    def visit_Assign(self, node: ast.Assign) -> None:
        self.visit(node.value)
        inferred = self._expression_type(node.value)
        for target in node.targets:
            if isinstance(target, ast.Name):
                self.local_types[target.id] = inferred

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if node.value is not None:
            self.visit(node.value)
        if isinstance(node.target, ast.Name):
            self.local_types[node.target.id] = _type_name(
                node.annotation, self.declared
            )

    def visit_For(self, node: ast.For) -> None:
        self.visit(node.iter)
        if isinstance(node.target, ast.Name):
            self.local_types[node.target.id] = self._element_type(node.iter)
        for statement in node.body + node.orelse:
            self.visit(statement)

    def visit_Call(self, node: ast.Call) -> None:
        self.visit(node.func)
        for arg in node.args:
            self.visit(arg)
        for keyword in node.keywords:
            self.visit(keyword.value)
        edge = self._resolve(node)
        if edge is not None:
            self.edges.append(edge)

    def _expression_type(self, node: ast.AST) -> Optional[str]:
        if isinstance(node, ast.Call):
            func = node.func
            if isinstance(func, ast.Name):
                if func.id in self.declared:
                    return func.id
                if func.id == "cls":
                    return self.owner
            return None
        if isinstance(node, ast.Name):
            if node.id == "self":
                return self.owner
            return self.local_types.get(node.id)
        attribute = _self_attribute(node)
        if attribute is not None:
            if attribute in self.containers:
                return None
            return self.fields.get(attribute)
        if isinstance(node, ast.Subscript):
            return self._element_type(node.value)
        return None

    def _element_type(self, node: ast.AST) -> Optional[str]:
        """Type of the items produced by iterating or indexing ``node``."""

        attribute = _self_attribute(node)
        if attribute is not None:
            return self.fields.get(attribute)
        if isinstance(node, ast.Call) and _dotted_tail(node.func) in (
            "values",
            "items",
            "list",
            "reversed",
            "sorted",
        ):
            if isinstance(node.func, ast.Attribute):
                return self._element_type(node.func.value)
            if node.args:
                return self._element_type(node.args[0])
        return self._expression_type(node)

    def _resolve(self, node: ast.Call) -> Optional[CallEdge]:
        func = node.func
        if isinstance(func, ast.Name):
            if func.id in self.declared:
                return CallEdge(callee_type=func.id, kind=EDGE_NEW)
            if func.id == "cls":
                return CallEdge(callee_type=self.owner, kind=EDGE_NEW)
            return None
        if not isinstance(func, ast.Attribute):
            return None
        receiver = func.value
        if isinstance(receiver, ast.Name) and receiver.id in ("self", "cls"):
            if func.attr in self.fields:
                return None
            return CallEdge(self.owner, func.attr, EDGE_CALL)
        if (
            isinstance(receiver, ast.Call)
            and isinstance(receiver.func, ast.Name)
            and receiver.func.id == "super"
        ):
            if not self.supertypes:
                return None
            return CallEdge(self.supertypes[0], func.attr, EDGE_CALL)
        if isinstance(receiver, ast.Name) and receiver.id in self.declared:
            if receiver.id not in self.local_types:
                return CallEdge(receiver.id, func.attr, EDGE_CALL)
        callee = self._expression_type(receiver)
        if callee in self.declared:
            return CallEdge(callee, func.attr, EDGE_CALL)
        return None


class _ClassReader:
    """Builds one TypeFact from a class definition."""

    def __init__(self, node: ast.ClassDef, declared: Set[str]) -> None:
        self.node = node
        self.declared = declared
        self.fields: Dict[str, Optional[str]] = {}
        self.containers: Set[str] = set()
        self._field_facts: Dict[str, MemberFact] = {}

    def read(self) -> TypeFact:
        node = self.node
        bases = [_dotted_tail(base) for base in node.bases]
        supertypes = tuple(
            name for name in bases if name and name not in _IGNORED_BASES
        )
        methods = [
            item for item in node.body if isinstance(item, _FunctionNode)
        ]
        self._collect_class_fields()
        for method in methods:
            self._collect_instance_fields(method)

        members: List[MemberFact] = list(self._field_facts.values())
        abstract = any(name in _ABSTRACT_BASES for name in bases)
        for method in methods:
            fact = self._read_method(method, supertypes)
            if fact is None:
                continue
            abstract = abstract or fact.abstract
            members.append(fact)
        return TypeFact(
            name=node.name,
            kind="abstract" if abstract else "class",
            supertypes=supertypes,
            members=tuple(members),
        )

    def _add_field(
        self,
        name: str,
        type_name: Optional[str],
        *,
        static: bool,
        container: bool = False,
    ) -> None:
        if container:
            self.containers.add(name)
        if name in self._field_facts:
            if type_name and not self.fields.get(name):
                self.fields[name] = type_name
                existing = self._field_facts[name]
                self._field_facts[name] = MemberFact(
                    name=name,
                    kind=MEMBER_FIELD,
                    type=type_name,
                    visibility=existing.visibility,
                    static=existing.static,
                )
            return
        self.fields[name] = type_name
        self._field_facts[name] = MemberFact(
            name=name,
            kind=MEMBER_FIELD,
            type=type_name,
            visibility=_visibility(name),
            static=static,
        )

    def _collect_class_fields(self) -> None:
        for item in self.node.body:
            if isinstance(item, ast.AnnAssign) and isinstance(
                item.target, ast.Name
            ):
                self._add_field(
                    item.target.id,
                    _type_name(item.annotation, self.declared),
                    static=item.value is not None,
                    container=_is_container(item.annotation, item.value),
                )
            elif isinstance(item, ast.Assign):
                inferred = None
                if isinstance(item.value, ast.Call):
                    inferred = _dotted_tail(item.value.func)
                    if inferred not in self.declared:
                        inferred = None
                for target in item.targets:
                    if isinstance(target, ast.Name):
                        self._add_field(
                            target.id,
                            inferred,
                            static=True,
                            container=_is_container(None, item.value),
                        )

    def _param_types(self, method: ast.AST) -> Dict[str, Optional[str]]:
        return {
            arg.arg: _type_name(arg.annotation, self.declared)
            for arg in self._params(method, include_receiver=False)
        }

    def _collect_instance_fields(self, method: ast.AST) -> None:
        params = self._param_types(method)
        annotations = {
            arg.arg: arg.annotation
            for arg in self._params(method, include_receiver=False)
        }
        for child in ast.walk(method):
            if isinstance(child, ast.AnnAssign):
                attribute = _self_attribute(child.target)
                if attribute is not None:
                    self._add_field(
                        attribute,
                        _type_name(child.annotation, self.declared),
                        static=False,
                        container=_is_container(
                            child.annotation, child.value
                        ),
                    )
            elif isinstance(child, ast.Assign):
                inferred: Optional[str] = None
                value = child.value
                container = _is_container(None, value)
                if isinstance(value, ast.Name):
                    inferred = params.get(value.id)
                    container = _is_container(
                        annotations.get(value.id), None
                    )
                elif isinstance(value, ast.Call):
                    name = _dotted_tail(value.func)
                    inferred = name if name in self.declared else None
                for target in child.targets:
                    attribute = _self_attribute(target)
                    if attribute is not None:
                        self._add_field(
                            attribute,
                            inferred,
                            static=False,
                            container=container,
                        )

    def _params(self, method, *, include_receiver: bool) -> List[ast.arg]:
        args = list(method.args.posonlyargs) + list(method.args.args)
        if not include_receiver and "staticmethod" not in _decorators(method):
            args = args[1:]
        return args + list(method.args.kwonlyargs)

    def _read_method(
        self, method, supertypes: Sequence[str]
    ) -> Optional[MemberFact]:
        name = method.name
        is_dunder = name.startswith("__") and name.endswith("__")
        if is_dunder and name not in ("__init__", "__call__"):
            return None
        decorators = _decorators(method)
        params = self._params(method, include_receiver=False)
        param_types = {
            arg.arg: _type_name(arg.annotation, self.declared)
            for arg in params
        }
        collector = _CallCollector(
            self.node.name,
            self.declared,
            self.fields,
            param_types,
            supertypes,
            self.containers,
        )
        for statement in method.body:
            collector.visit(statement)
        return MemberFact(
            name=name,
            kind=MEMBER_CONSTRUCTOR if name == "__init__" else MEMBER_METHOD,
            params=tuple(param_types[arg.arg] for arg in params),
            returns=self._returns(method),
            visibility=_visibility(name),
            static=bool(decorators & {"staticmethod", "classmethod"}),
            abstract="abstractmethod" in decorators,
            calls=tuple(collector.edges),
        )

    def _returns(self, method) -> Optional[str]:
        if method.returns is not None:
            return _type_name(method.returns, self.declared)
        for child in ast.walk(method):
            if not isinstance(child, ast.Return) or child.value is None:
                continue
            value = child.value
            if isinstance(value, ast.Constant) and value.value is None:
                continue
            if isinstance(value, ast.Name) and value.id == "self":
                return self.node.name
            if isinstance(value, ast.Call):
                callee = _dotted_tail(value.func)
                if callee == "cls":
                    return self.node.name
                if callee in self.declared:
                    return callee
            return "Any"
        return None


class PythonFactExtractor(FactExtractor):
    """Extracts classes, members, supertypes and call edges from Python."""

    language_name = "python"
    suffixes = (".py",)

    def extract(self, source: str, name: str) -> FactSet:
        try:
            tree = ast.parse(source)
        except (SyntaxError, ValueError) as exc:
            raise FactSourceError(
                f"Snippet '{name}' is not valid Python: {exc}"
            ) from exc
        classes = [
            node for node in tree.body if isinstance(node, ast.ClassDef)
        ]
        declared = {node.name for node in classes}
        types: Dict[str, TypeFact] = {}
        for node in classes:
            if node.name in types:
                raise FactSourceError(
                    f"Snippet '{name}' declares class '{node.name}' twice"
                )
            types[node.name] = _ClassReader(node, declared).read()
        return FactSet(name=name, language=self.language_name, types=types)


__all__ = ["PythonFactExtractor"]
