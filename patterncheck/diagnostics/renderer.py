# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Diagnostic renderer backed by Jinja2 templates."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
)

from patterncheck.diagnostics.messages import (
    FAIL_LINE,
    PASS_LINE,
    REASON_MESSAGES,
    RULE_MESSAGES,
    SATISFIED_LINE,
    VIOLATION_LINE,
)
from patterncheck.types import (
    Binding,
    PatternTemplate,
    RelationshipRule,
    RuleOutcome,
    Verdict,
)


class DiagnosticRenderer:
    """Turns rule outcomes and verdicts into human-readable text."""

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        *,
        extra_dirs: Optional[Sequence[Path]] = None,
    ) -> None:
        if templates_dir is not None:
            base_dir = Path(templates_dir)
        else:
            base_dir = Path(__file__).parent / "templates"
        if not base_dir.exists():
            raise FileNotFoundError(
                f"Templates directory not found: {base_dir}"
            )
        paths = []
        for override in extra_dirs or ():
            override_path = Path(override)
            if not override_path.exists():
                raise FileNotFoundError(
                    f"Report override directory not found: {override_path}"
                )
            paths.append(override_path)
        paths.append(base_dir)
        self._search_paths = tuple(paths)
        self._env = Environment(
            loader=ChoiceLoader(
                [FileSystemLoader(str(path)) for path in self._search_paths]
            ),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._inline: Dict[str, Template] = {}

    @property
    def search_paths(self) -> tuple[Path, ...]:
        return self._search_paths

    def list_templates(self) -> list[str]:
        return sorted(set(self._env.list_templates()))

    def _string(self, text: str, /, **context) -> str:
        template = self._inline.get(text)
        if template is None:
            template = self._env.from_string(text)
            self._inline[text] = template
        return template.render(**context)

    def render(self, template_name: str, **context) -> str:
        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as exc:
            raise FileNotFoundError(
                f"Template '{template_name}' not found in {self._search_paths}"
            ) from exc
        return template.render(**context)

    def rule_text(self, rule: RelationshipRule, binding: Binding) -> str:
        return self._string(
            RULE_MESSAGES[rule.kind],
            source=_participant(rule.source, binding),
            target=_participant(rule.target, binding),
        )

    def outcome_message(self, outcome: RuleOutcome, binding: Binding) -> str:
        rule = outcome.rule
        if outcome.satisfied:
            return self._string(SATISFIED_LINE, label=rule.label)
        ordering = rule.ordering.describe() if rule.ordering else ""
        reason = self._string(
            REASON_MESSAGES[outcome.reason or ""],
            detail=outcome.detail,
            ordering=ordering,
        )
        return self._string(
            VIOLATION_LINE,
            label=rule.label,
            rule=self.rule_text(rule, binding),
            reason=reason,
        )

    def summary(
        self,
        pattern: str,
        binding: Optional[Binding],
        *,
        passed: bool,
        score: int,
        total: int,
    ) -> str:
        return self._string(
            PASS_LINE if passed else FAIL_LINE,
            pattern=pattern,
            binding=str(binding) if binding is not None else "<none>",
            score=score,
            total=total,
        )

    def render_verdict(self, verdict: Verdict) -> str:
        return self.render("verdict.txt.j2", verdict=verdict)

    def render_pattern(self, template: PatternTemplate) -> str:
        return self.render("pattern.txt.j2", template=template)


def _participant(role: str, binding: Binding) -> str:
    types = binding.types_for(role)
    if not types:
        return role
    return f"{role} ({', '.join(types)})"


__all__ = ["DiagnosticRenderer"]
