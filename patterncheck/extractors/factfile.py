"""Loader for pre-extracted fact files (YAML or JSON)."""

from __future__ import annotations

import yaml

from patterncheck.exceptions import MalformedFactSetError
from patterncheck.extractors.base import FactExtractor
from patterncheck.facts import FactSet, build_fact_set


class FactFileExtractor(FactExtractor):
    """Reads facts produced by an external extractor.

    JSON is a subset of YAML, so one safe loader handles both formats.
    """

    language_name = "facts"
    suffixes = (".yaml", ".yml", ".json")

    def extract(self, source: str, name: str) -> FactSet:
        try:
            data = yaml.safe_load(source) or {}
        except yaml.YAMLError as exc:
            raise MalformedFactSetError(
                f"Fact file '{name}' is not valid YAML/JSON: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise MalformedFactSetError(
                f"Fact file '{name}' must contain a mapping"
            )
        if "name" not in data:
            data = dict(data, name=name)
        return build_fact_set(data)


__all__ = ["FactFileExtractor"]
