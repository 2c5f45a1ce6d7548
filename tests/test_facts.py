from __future__ import annotations

import pytest

from patterncheck.constants import EDGE_CALL, EDGE_NEW
from patterncheck.exceptions import MalformedFactSetError
from patterncheck.facts import CallEdge, FactSet, build_fact_set


def _facts(types) -> FactSet:
    return build_fact_set({"name": "sample", "types": types})


def test_build_fact_set_parses_members_and_edges() -> None:
    facts = _facts(
        {
            "Client": {
                "supertypes": "Base",
                "references": ["Service"],
                "members": [
                    {"name": "svc", "kind": "field", "type": "Service"},
                    {
                        "name": "run",
                        "params": ["int", {"type": "Service"}, None],
                        "returns": "void",
                        "calls": [
                            "Service.go",
                            {"new": "Service"},
                            {"type": "Base", "member": "setup"},
                        ],
                    },
                ],
            },
            "Base": {"members": [{"name": "setup"}]},
            "Service": {"members": [{"name": "go"}]},
        }
    )
    client = facts.types["Client"]
    assert client.supertypes == ("Base",)
    run = client.members[1]
    assert run.arity == 3
    assert run.params == ("int", "Service", None)
    assert run.calls == (
        CallEdge("Service", "go", EDGE_CALL),
        CallEdge("Service", None, EDGE_NEW),
        CallEdge("Base", "setup", EDGE_CALL),
    )
    assert facts.return_category("Client", run) == "none"
    assert facts.held_types("Client") == {"Service", "int"}
    assert facts.type_names() == ["Base", "Client", "Service"]
    assert [edge[:2] for edge in facts.call_edges()] == [
        ("Client", "run"),
        ("Client", "run"),
        ("Client", "run"),
    ]


def test_list_form_types_and_default_name() -> None:
    facts = build_fact_set(
        {"types": [{"name": "A", "members": [{"name": "m"}]}]}
    )
    assert facts.name == "snippet"
    assert "A" in facts
    assert len(facts) == 1


def test_return_categories() -> None:
    facts = _facts(
        {
            "Node": {
                "members": [
                    {"name": "copy", "returns": "Node"},
                    {"name": "other", "returns": "Leaf"},
                    {"name": "size", "returns": "int"},
                    {"name": "reset"},
                ]
            },
            "Leaf": {},
        }
    )
    node = facts.types["Node"]
    categories = [
        facts.return_category("Node", member) for member in node.members
    ]
    assert categories == ["self", "object", "value", "none"]


def test_supertype_closure_is_transitive() -> None:
    facts = _facts(
        {
            "A": {},
            "B": {"supertypes": ["A"]},
            "C": {"supertypes": ["B", "External"]},
            "D": {"supertypes": ["B", "C"]},
        }
    )
    assert facts.supertype_closure("C") == {"A", "B", "External"}
    assert facts.supertype_closure("D") == {"A", "B", "C", "External"}
    assert facts.supertype_closure("Missing") == set()


def test_supertype_cycle_is_malformed() -> None:
    facts = _facts({"A": {"supertypes": ["B"]}, "B": {"supertypes": ["A"]}})
    with pytest.raises(MalformedFactSetError):
        facts.supertype_closure("A")
    with pytest.raises(MalformedFactSetError):
        facts.validate()


def test_validate_rejects_dangling_call_edge() -> None:
    facts = _facts({"A": {"members": [{"name": "m", "calls": ["Ghost.x"]}]}})
    with pytest.raises(MalformedFactSetError, match="Ghost"):
        facts.validate()


@pytest.mark.parametrize(
    "types",
    [
        {"A": {"members": [{"name": "m", "kind": "property"}]}},
        {"A": {"members": [{"name": "m", "visibility": "internal"}]}},
        {"A": {"members": [{"name": "m", "calls": [{"kind": "call"}]}]}},
        {"A": {"members": "not-a-list"}},
        "not-a-mapping",
    ],
)
def test_malformed_inputs_raise(types) -> None:
    with pytest.raises(MalformedFactSetError):
        _facts(types)


def test_without_type_drops_edges_into_removed_type() -> None:
    facts = _facts(
        {
            "A": {
                "members": [{"name": "m", "calls": ["B.x", {"new": "C"}]}]
            },
            "B": {"members": [{"name": "x"}]},
            "C": {},
        }
    )
    reduced = facts.without_type("B")
    assert "B" not in reduced
    assert reduced.types["A"].members[0].calls == (
        CallEdge("C", None, EDGE_NEW),
    )
    reduced.validate()
    # The original fact set is left untouched.
    assert len(facts.types["A"].members[0].calls) == 2


def test_to_dict_round_trips_through_builder() -> None:
    facts = _facts(
        {
            "A": {
                "supertypes": ["B"],
                "members": [
                    {"name": "f", "kind": "field", "type": "B"},
                    {
                        "name": "m",
                        "params": ["B"],
                        "returns": "B",
                        "visibility": "protected",
                        "static": True,
                        "calls": ["B.n"],
                    },
                ],
            },
            "B": {"members": [{"name": "n"}]},
        }
    )
    assert build_fact_set(facts.to_dict()) == facts
