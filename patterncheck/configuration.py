"""Typed helpers for parsing patterncheck configuration dictionaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from patterncheck.constants import (
    DEFAULT_CANDIDATE_CAP,
    DEFAULT_MAX_BINDINGS,
    DEFAULT_POWERSET_LIMIT,
    FORMAT_TEXT,
    OUTPUT_FORMATS,
)
from patterncheck.exceptions import TemplateConfigError

DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parent.parent / "configs" / "default_config.yaml"
)


def _ensure_path(value: Optional[str | Path], *, config_root: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (config_root / path).resolve()
    return path


def _positive_int(value: Any, *, name: str, default: int) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise TemplateConfigError(
            f"'{name}' must be an integer, got {value!r}"
        ) from exc
    if number < 1:
        raise TemplateConfigError(f"'{name}' must be >= 1, got {number}")
    return number


@dataclass(frozen=True)
class BinderSettings:
    candidate_cap: int = DEFAULT_CANDIDATE_CAP
    powerset_limit: int = DEFAULT_POWERSET_LIMIT


@dataclass(frozen=True)
class AggregatorSettings:
    max_bindings: int = DEFAULT_MAX_BINDINGS


@dataclass(frozen=True)
class TemplateSettings:
    builtin: bool = True
    paths: Tuple[Path, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OutputSettings:
    format: str = FORMAT_TEXT


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "WARNING"
    file: Optional[Path] = None


@dataclass(frozen=True)
class CheckSettings:
    binder: BinderSettings = field(default_factory=BinderSettings)
    aggregator: AggregatorSettings = field(default_factory=AggregatorSettings)
    templates: TemplateSettings = field(default_factory=TemplateSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    batch_workers: int = 1


def build_check_settings(
    config: Dict[str, Any], *, config_root: Path
) -> CheckSettings:
    """Parse the ``patterncheck:`` section of a loaded YAML config."""

    root = config.get("patterncheck") or {}
    if not isinstance(root, dict):
        raise TemplateConfigError("'patterncheck' config must be a mapping")

    binder_cfg = root.get("binder") or {}
    binder = BinderSettings(
        candidate_cap=_positive_int(
            binder_cfg.get("candidate_cap"),
            name="binder.candidate_cap",
            default=DEFAULT_CANDIDATE_CAP,
        ),
        powerset_limit=_positive_int(
            binder_cfg.get("powerset_limit"),
            name="binder.powerset_limit",
            default=DEFAULT_POWERSET_LIMIT,
        ),
    )

    aggregator_cfg = root.get("aggregator") or {}
    aggregator = AggregatorSettings(
        max_bindings=_positive_int(
            aggregator_cfg.get("max_bindings"),
            name="aggregator.max_bindings",
            default=DEFAULT_MAX_BINDINGS,
        )
    )

    templates_cfg = root.get("templates") or {}
    raw_paths = templates_cfg.get("paths") or []
    if isinstance(raw_paths, (str, Path)):
        raw_paths = [raw_paths]
    templates = TemplateSettings(
        builtin=bool(templates_cfg.get("builtin", True)),
        paths=tuple(
            _ensure_path(item, config_root=config_root) for item in raw_paths
        ),
    )

    output_cfg = root.get("output") or {}
    output_format = str(output_cfg.get("format") or FORMAT_TEXT).lower()
    if output_format not in OUTPUT_FORMATS:
        raise TemplateConfigError(
            f"Unknown output format '{output_format}' "
            f"(expected one of {', '.join(OUTPUT_FORMATS)})"
        )

    logging_cfg = root.get("logging") or {}
    log_file = logging_cfg.get("file")
    logging_settings = LoggingSettings(
        level=str(logging_cfg.get("level") or "WARNING").upper(),
        file=(
            _ensure_path(log_file, config_root=config_root)
            if log_file
            else None
        ),
    )

    batch_cfg = root.get("batch") or {}
    return CheckSettings(
        binder=binder,
        aggregator=aggregator,
        templates=templates,
        output=OutputSettings(format=output_format),
        logging=logging_settings,
        batch_workers=_positive_int(
            batch_cfg.get("workers"), name="batch.workers", default=1
        ),
    )


__all__ = [
    "AggregatorSettings",
    "BinderSettings",
    "CheckSettings",
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "OutputSettings",
    "TemplateSettings",
    "build_check_settings",
]
