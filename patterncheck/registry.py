"""Pattern model registry and YAML template loader."""

from __future__ import annotations

import logging
import re

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import yaml

from patterncheck.constants import COVERAGE_SOURCE, MULTIPLICITY_ONE
from patterncheck.exceptions import (
    DuplicatePatternError,
    TemplateConfigError,
    UnknownPatternError,
)
from patterncheck.types import (
    MemberShape,
    OrderingConstraint,
    PatternTemplate,
    RelationshipRule,
    Role,
)

LOGGER = logging.getLogger(__name__)
BUILTIN_TEMPLATES_PATH = Path(__file__).parent / "templates" / "gof.yaml"
_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_name(name: str) -> str:
    """Lookup key for a pattern name: case and separators are ignored."""

    return _SEPARATORS.sub("", name).lower()


class PatternRegistry:
    """Read-only (after construction) store of pattern templates."""

    def __init__(self, templates: Iterable[PatternTemplate] = ()) -> None:
        self._templates: Dict[str, PatternTemplate] = {}
        self._index: Dict[str, str] = {}
        for template in templates:
            self.register(template)

    def register(self, template: PatternTemplate) -> None:
        keys = [normalize_name(template.name)]
        keys.extend(normalize_name(alias) for alias in template.aliases)
        for key in keys:
            if key in self._index:
                raise DuplicatePatternError(
                    f"Pattern '{template.name}' clashes with registered "
                    f"pattern '{self._index[key]}'"
                )
        self._templates[template.name] = template
        for key in keys:
            self._index[key] = template.name

    def get(self, name: str) -> PatternTemplate:
        canonical = self._index.get(normalize_name(name))
        if canonical is None:
            raise UnknownPatternError(f"Unknown pattern '{name}'")
        return self._templates[canonical]

    def names(self, category: Optional[str] = None) -> List[str]:
        return [
            template.name
            for template in self._templates.values()
            if category is None or template.category == category
        ]

    def templates(self) -> List[PatternTemplate]:
        return list(self._templates.values())

    def __contains__(self, name: object) -> bool:
        return (
            isinstance(name, str) and normalize_name(name) in self._index
        )

    def __iter__(self) -> Iterator[PatternTemplate]:
        return iter(self.templates())

    def __len__(self) -> int:
        return len(self._templates)


def _parse_shape(raw: Any, *, where: str) -> MemberShape:
    if not isinstance(raw, Mapping):
        raise TemplateConfigError(f"{where}: member shapes must be mappings")
    arity = raw.get("arity")
    static = raw.get("static")
    return MemberShape(
        kind=str(raw.get("kind", "method")),
        arity=None if arity in (None, "any") else int(arity),
        returns=str(raw.get("returns", "any")),
        visibility=str(raw.get("visibility", "public")),
        static=None if static is None else bool(static),
    )


def _parse_role(raw: Any, *, pattern: str) -> Role:
    if not isinstance(raw, Mapping) or "name" not in raw:
        raise TemplateConfigError(f"{pattern}: roles need a 'name'")
    where = f"{pattern}.{raw['name']}"
    return Role(
        name=str(raw["name"]),
        multiplicity=str(raw.get("multiplicity", MULTIPLICITY_ONE)),
        members=tuple(
            _parse_shape(item, where=where)
            for item in raw.get("members") or []
        ),
        min_count=int(raw.get("min_count", 1)),
        description=str(raw.get("description", "")),
    )


def _parse_rule(raw: Any, *, pattern: str) -> RelationshipRule:
    if not isinstance(raw, Mapping):
        raise TemplateConfigError(f"{pattern}: rules must be mappings")
    missing = [key for key in ("kind", "source", "target") if key not in raw]
    if missing:
        raise TemplateConfigError(
            f"{pattern}: rule missing {', '.join(missing)}"
        )
    ordering = None
    ordering_raw = raw.get("ordering")
    if ordering_raw:
        if isinstance(ordering_raw, str):
            ordering_raw = {"position": ordering_raw}
        ordering = OrderingConstraint(
            position=str(ordering_raw.get("position", "first")),
            other=ordering_raw.get("other"),
        )
    return RelationshipRule(
        kind=str(raw["kind"]),
        source=str(raw["source"]),
        target=str(raw["target"]),
        ordering=ordering,
        coverage=str(raw.get("coverage", COVERAGE_SOURCE)),
    )


def parse_template(raw: Mapping[str, Any]) -> PatternTemplate:
    """Build a PatternTemplate from its mapping form."""

    if not isinstance(raw, Mapping) or "name" not in raw:
        raise TemplateConfigError("Pattern definitions need a 'name'")
    name = str(raw["name"])
    try:
        return PatternTemplate(
            name=name,
            category=str(raw.get("category", "")),
            roles=tuple(
                _parse_role(item, pattern=name)
                for item in raw.get("roles") or []
            ),
            rules=tuple(
                _parse_rule(item, pattern=name)
                for item in raw.get("rules") or []
            ),
            aliases=tuple(str(alias) for alias in raw.get("aliases") or []),
            description=str(raw.get("description", "")).strip(),
        )
    except (TypeError, ValueError) as exc:
        raise TemplateConfigError(f"{name}: {exc}") from exc


def load_templates(path: Path) -> List[PatternTemplate]:
    """Read every pattern definition from a YAML file."""

    path = Path(path)
    if not path.exists():
        raise TemplateConfigError(f"Template file '{path}' not found.")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise TemplateConfigError(f"Invalid YAML in '{path}': {exc}") from exc
    entries = data.get("patterns") if isinstance(data, Mapping) else None
    if not isinstance(entries, list):
        raise TemplateConfigError(f"'{path}' has no 'patterns' list")
    templates = [parse_template(entry) for entry in entries]
    LOGGER.debug("Loaded %d templates from %s", len(templates), path)
    return templates


def build_default_registry(
    extra_paths: Iterable[Path] = (),
    *,
    include_builtin: bool = True,
) -> PatternRegistry:
    """Registry with the builtin templates plus any extra template files."""

    registry = PatternRegistry()
    paths: List[Path] = []
    if include_builtin:
        paths.append(BUILTIN_TEMPLATES_PATH)
    paths.extend(Path(path) for path in extra_paths)
    for path in paths:
        for template in load_templates(path):
            registry.register(template)
    LOGGER.info("Pattern registry ready with %d templates", len(registry))
    return registry


__all__ = [
    "BUILTIN_TEMPLATES_PATH",
    "PatternRegistry",
    "build_default_registry",
    "load_templates",
    "normalize_name",
    "parse_template",
]
