"""CLI entrypoints for patterncheck."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dotenv import load_dotenv

from patterncheck.checker import PatternChecker
from patterncheck.configuration import (
    DEFAULT_CONFIG_PATH,
    CheckSettings,
    build_check_settings,
)
from patterncheck.constants import (
    CATEGORIES,
    FORMAT_ENV_VAR,
    FORMAT_JSON,
    FORMAT_TEXT,
    FORMAT_YAML,
    OUTPUT_FORMATS,
)
from patterncheck.exceptions import PatternCheckError, TemplateConfigError
from patterncheck.logging import level_from_name, setup_file_logger
from patterncheck.registry import PatternRegistry, build_default_registry
from patterncheck.types import CheckOutcome, PatternTemplate

LOGGER = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patterncheck",
        description=(
            "Check whether code snippets structurally conform to "
            "classic design patterns."
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        help=(
            "Path to a YAML config. If omitted, uses "
            "configs/default_config.yaml when present."
        ),
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        help=f"Output format (default: ${FORMAT_ENV_VAR} or config).",
    )
    parser.add_argument(
        "--templates",
        action="append",
        dest="template_paths",
        help="Additional YAML template file (repeatable).",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this rotating log file.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify = subparsers.add_parser(
        "verify", help="Check one snippet against a pattern."
    )
    verify.add_argument("pattern", help="Pattern name or alias.")
    verify.add_argument(
        "snippet", help="Python source or YAML/JSON fact file."
    )

    listing = subparsers.add_parser(
        "list-patterns", help="List registered pattern templates."
    )
    listing.add_argument("--category", choices=CATEGORIES)

    show = subparsers.add_parser(
        "show-pattern", help="Show the roles and rules of a pattern."
    )
    show.add_argument("pattern", help="Pattern name or alias.")

    batch = subparsers.add_parser(
        "batch", help="Check several snippets against one pattern."
    )
    batch.add_argument("pattern", help="Pattern name or alias.")
    batch.add_argument("snippets", nargs="+", help="Snippet paths.")
    batch.add_argument(
        "--workers",
        type=int,
        help="Override the number of parallel batch workers.",
    )
    return parser


def _load_config(config_path: Path) -> dict:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file '{config_path}' not found.")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise TemplateConfigError(
            f"Invalid YAML in config '{config_path}': {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise TemplateConfigError(
            f"Config '{config_path}' must contain a mapping"
        )
    return data


def _resolve_settings(args: argparse.Namespace) -> CheckSettings:
    if args.config:
        config_path = Path(args.config).expanduser()
        config = _load_config(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
        config = _load_config(config_path)
    else:
        config_path = Path.cwd() / "patterncheck.yaml"
        config = {}
    return build_check_settings(
        config, config_root=config_path.resolve().parent
    )


def _resolve_format(args: argparse.Namespace, settings: CheckSettings) -> str:
    if args.format:
        return args.format
    env_format = (os.environ.get(FORMAT_ENV_VAR) or "").strip().lower()
    if env_format:
        if env_format not in OUTPUT_FORMATS:
            raise TemplateConfigError(
                f"{FORMAT_ENV_VAR}={env_format!r} is not one of "
                f"{', '.join(OUTPUT_FORMATS)}"
            )
        return env_format
    return settings.output.format


def _configure_logging(
    args: argparse.Namespace, settings: CheckSettings
) -> None:
    level = (
        logging.DEBUG
        if args.verbose
        else level_from_name(settings.logging.level)
    )
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level, format="%(levelname)s %(name)s: %(message)s"
        )
        # The file log may be more verbose than the console.
        for handler in root.handlers:
            handler.setLevel(level)
    logging.getLogger("patterncheck").setLevel(level)
    log_file = Path(args.log_file) if args.log_file else settings.logging.file
    if log_file is not None:
        setup_file_logger(log_file, level=min(level, logging.INFO))


def _build_registry(
    args: argparse.Namespace, settings: CheckSettings
) -> PatternRegistry:
    extra = list(settings.templates.paths)
    extra.extend(Path(path) for path in args.template_paths or [])
    return build_default_registry(
        extra, include_builtin=settings.templates.builtin
    )


def _emit(payload: Any, output_format: str) -> None:
    if output_format == FORMAT_JSON:
        print(json.dumps(payload, indent=2))
    elif output_format == FORMAT_YAML:
        print(yaml.safe_dump(payload, sort_keys=False).rstrip())
    else:
        print(payload)


def _template_payload(template: PatternTemplate) -> Dict[str, Any]:
    return {
        "name": template.name,
        "category": template.category,
        "aliases": list(template.aliases),
        "description": template.description,
        "roles": [
            {
                "name": role.name,
                "multiplicity": role.multiplicity,
                "min_count": role.min_count,
                "members": [shape.describe() for shape in role.members],
            }
            for role in template.roles
        ],
        "rules": [
            {
                "label": rule.label,
                "coverage": rule.coverage,
                "ordering": (
                    rule.ordering.describe() if rule.ordering else None
                ),
            }
            for rule in template.rules
        ],
    }


def _outcome_line(outcome: CheckOutcome) -> str:
    if outcome.error is not None:
        return (
            f"ERROR {outcome.snippet}: "
            f"{outcome.error.kind}: {outcome.error}"
        )
    verdict = outcome.verdict
    status = "PASS" if outcome.passed else "FAIL"
    line = (
        f"{status} {outcome.snippet} "
        f"({verdict.score}/{len(verdict.outcomes)} rules)"
    )
    if verdict.violated_labels:
        line += f": {', '.join(verdict.violated_labels)}"
    return line


def _outcome_code(outcome: CheckOutcome) -> int:
    if outcome.error is not None:
        return EXIT_ERROR
    return EXIT_PASS if outcome.passed else EXIT_FAIL


def _cmd_verify(
    args: argparse.Namespace, checker: PatternChecker, output_format: str
) -> int:
    verdict = checker.verify_path(args.pattern, Path(args.snippet))
    if output_format == FORMAT_TEXT:
        text = checker.renderer.render_verdict(verdict).rstrip()
        _emit(text, output_format)
    else:
        _emit(verdict.to_dict(), output_format)
    return EXIT_PASS if verdict.passed else EXIT_FAIL


def _cmd_list(
    args: argparse.Namespace, checker: PatternChecker, output_format: str
) -> int:
    templates = [
        template
        for template in checker.registry.templates()
        if args.category is None or template.category == args.category
    ]
    if output_format == FORMAT_TEXT:
        for template in templates:
            print(f"{template.name:<24} {template.category}")
    else:
        _emit(
            [
                {
                    "name": template.name,
                    "category": template.category,
                    "aliases": list(template.aliases),
                }
                for template in templates
            ],
            output_format,
        )
    return EXIT_PASS


def _cmd_show(
    args: argparse.Namespace, checker: PatternChecker, output_format: str
) -> int:
    template = checker.registry.get(args.pattern)
    if output_format == FORMAT_TEXT:
        text = checker.renderer.render_pattern(template).rstrip()
        _emit(text, output_format)
    else:
        _emit(_template_payload(template), output_format)
    return EXIT_PASS


def _cmd_batch(
    args: argparse.Namespace, checker: PatternChecker, output_format: str
) -> int:
    checker.registry.get(args.pattern)
    requests = [(args.pattern, Path(path)) for path in args.snippets]
    outcomes: List[CheckOutcome] = checker.verify_batch(
        requests, workers=args.workers
    )
    if output_format == FORMAT_TEXT:
        for outcome in outcomes:
            print(_outcome_line(outcome))
    else:
        _emit([outcome.to_dict() for outcome in outcomes], output_format)
    return max((_outcome_code(outcome) for outcome in outcomes), default=0)


_COMMANDS = {
    "verify": _cmd_verify,
    "list-patterns": _cmd_list,
    "show-pattern": _cmd_show,
    "batch": _cmd_batch,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        settings = _resolve_settings(args)
        output_format = _resolve_format(args, settings)
        _configure_logging(args, settings)
        LOGGER.debug("Running %s with %s output", args.command, output_format)
        registry = _build_registry(args, settings)
        checker = PatternChecker(registry, settings)
        return _COMMANDS[args.command](args, checker, output_format)
    except PatternCheckError as exc:
        print(f"{exc.kind}: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except FileNotFoundError as exc:
        print(f"Config: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
