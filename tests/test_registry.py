from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from patterncheck.exceptions import (
    DuplicatePatternError,
    TemplateConfigError,
    UnknownPatternError,
)
from patterncheck.registry import (
    BUILTIN_TEMPLATES_PATH,
    PatternRegistry,
    build_default_registry,
    load_templates,
    normalize_name,
    parse_template,
)

PIPELINE = {
    "name": "Pipeline",
    "category": "behavioral",
    "aliases": ["Chain Of Stages"],
    "description": "  Stages hand work to the next stage.  ",
    "roles": [
        {"name": "Stage", "members": [{"arity": 1, "returns": "none"}]},
        {
            "name": "ConcreteStage",
            "multiplicity": "many",
            "min_count": 2,
            "members": [{"arity": 1}],
        },
    ],
    "rules": [
        {
            "kind": "inherits-from",
            "source": "ConcreteStage",
            "target": "Stage",
        },
        {
            "kind": "delegates-call-to",
            "source": "ConcreteStage",
            "target": "Stage",
            "ordering": "last",
        },
    ],
}


def _write(path: Path, payload) -> Path:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_normalize_name_ignores_case_and_separators() -> None:
    assert normalize_name("Chain of Responsibility") == "chainofresponsibility"
    assert normalize_name("chain-of_responsibility") == "chainofresponsibility"
    assert normalize_name("FACTORY METHOD") == "factorymethod"


def test_builtin_registry_holds_the_catalogue(registry) -> None:
    assert len(registry) == 23
    assert len(registry.names("creational")) == 5
    assert len(registry.names("structural")) == 7
    assert len(registry.names("behavioral")) == 11
    assert registry.names("unknown") == []
    assert "observer" in registry
    assert "NotAPattern" not in registry
    assert 42 not in registry


@pytest.mark.parametrize(
    "alias, expected",
    [
        ("chain-of-responsibility", "ChainOfResponsibility"),
        ("CoR", "ChainOfResponsibility"),
        ("policy", "Strategy"),
        ("publish_subscribe", "Observer"),
        ("Surrogate", "Proxy"),
        ("template method", "TemplateMethod"),
    ],
)
def test_lookup_by_name_or_alias(registry, alias, expected) -> None:
    assert registry.get(alias).name == expected


def test_unknown_pattern_raises(registry) -> None:
    with pytest.raises(UnknownPatternError, match="NotAPattern"):
        registry.get("NotAPattern")


def test_parse_template_reads_roles_and_rules() -> None:
    template = parse_template(PIPELINE)
    assert template.name == "Pipeline"
    assert template.aliases == ("Chain Of Stages",)
    assert template.description == "Stages hand work to the next stage."
    stage, concrete = template.roles
    assert stage.members[0].returns == "none"
    assert concrete.is_many and concrete.min_count == 2
    ordered = template.rules[1]
    assert ordered.ordering is not None
    assert ordered.ordering.position == "last"
    assert ordered.label == "delegates-call-to(ConcreteStage,Stage)"


def test_duplicate_names_and_aliases_are_rejected() -> None:
    registry = PatternRegistry([parse_template(PIPELINE)])
    with pytest.raises(DuplicatePatternError):
        registry.register(parse_template(PIPELINE))
    clash = dict(PIPELINE, name="Stages", aliases=["pipeline"])
    with pytest.raises(DuplicatePatternError, match="Pipeline"):
        registry.register(parse_template(clash))
    assert registry.names() == ["Pipeline"]


@pytest.mark.parametrize(
    "mutation, message",
    [
        ({"category": "mystical"}, "unknown category"),
        ({"roles": []}, "no roles"),
        (
            {
                "rules": [
                    {
                        "kind": "inherits-from",
                        "source": "ConcreteStage",
                        "target": "Stage",
                    }
                ],
                "roles": PIPELINE["roles"]
                + [{"name": "Orphan", "members": []}],
            },
            "appear in no rule",
        ),
        (
            {
                "rules": [
                    {
                        "kind": "inherits-from",
                        "source": "Ghost",
                        "target": "Stage",
                    }
                ]
            },
            "undeclared role 'Ghost'",
        ),
        (
            {
                "rules": [
                    {
                        "kind": "holds-reference-to",
                        "source": "ConcreteStage",
                        "target": "Stage",
                        "ordering": "first",
                    }
                ]
            },
            "only apply to call edges",
        ),
        ({"rules": [{"kind": "teleports", "source": "a"}]}, "missing"),
        (
            {
                "rules": [
                    {
                        "kind": "teleports",
                        "source": "ConcreteStage",
                        "target": "Stage",
                    }
                ]
            },
            "Unknown relationship kind",
        ),
    ],
)
def test_invalid_templates_are_rejected(mutation, message) -> None:
    raw = dict(PIPELINE, **mutation)
    with pytest.raises(TemplateConfigError, match=message):
        parse_template(raw)


def test_bad_member_values_become_template_errors() -> None:
    raw = dict(PIPELINE)
    raw["roles"] = [
        {"name": "Stage", "members": [{"arity": "several"}]},
        PIPELINE["roles"][1],
    ]
    with pytest.raises(TemplateConfigError, match="Pipeline"):
        parse_template(raw)


def test_load_templates_errors(tmp_path: Path) -> None:
    with pytest.raises(TemplateConfigError, match="not found"):
        load_templates(tmp_path / "missing.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("patterns: [unclosed", encoding="utf-8")
    with pytest.raises(TemplateConfigError, match="Invalid YAML"):
        load_templates(broken)

    empty = _write(tmp_path / "empty.yaml", {"templates": []})
    with pytest.raises(TemplateConfigError, match="'patterns' list"):
        load_templates(empty)


def test_extra_template_files_extend_the_registry(tmp_path: Path) -> None:
    extra = _write(tmp_path / "extra.yaml", {"patterns": [PIPELINE]})
    registry = build_default_registry([extra])
    assert len(registry) == 24
    assert registry.get("chain of stages").name == "Pipeline"

    only_extra = build_default_registry([extra], include_builtin=False)
    assert only_extra.names() == ["Pipeline"]


def test_extra_templates_cannot_shadow_builtins(tmp_path: Path) -> None:
    shadow = dict(PIPELINE, name="Observer", aliases=[])
    extra = _write(tmp_path / "shadow.yaml", {"patterns": [shadow]})
    with pytest.raises(DuplicatePatternError):
        build_default_registry([extra])


def test_builtin_template_file_is_packaged() -> None:
    assert BUILTIN_TEMPLATES_PATH.exists()
    templates = load_templates(BUILTIN_TEMPLATES_PATH)
    names = [template.name for template in templates]
    assert names[0] == "AbstractFactory"
    assert names[-1] == "Visitor"
