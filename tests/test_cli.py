from __future__ import annotations

import json
import logging

from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
import yaml

from helpers import CANONICAL_DIR, PYTHON_DIR, load_canonical_data
from patterncheck.cli import EXIT_ERROR, EXIT_FAIL, EXIT_PASS, main
from patterncheck.constants import FORMAT_ENV_VAR


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    monkeypatch.delenv(FORMAT_ENV_VAR, raising=False)
    logger = logging.getLogger("patterncheck")
    before = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers[:]:
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _broken_adapter(tmp_path: Path) -> Path:
    data = load_canonical_data("adapter")
    data["types"]["Adapter"]["members"][2]["calls"] = []
    path = tmp_path / "broken_adapter.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_verify_exit_codes(tmp_path: Path, capsys) -> None:
    adapter = str(CANONICAL_DIR / "adapter.yaml")
    assert main(["verify", "Adapter", adapter]) == EXIT_PASS
    out = capsys.readouterr().out
    assert out.startswith("Adapter / adapter: PASS")
    assert "  Adaptee: Adaptee" in out

    broken = str(_broken_adapter(tmp_path))
    assert main(["verify", "adapter", broken]) == EXIT_FAIL
    out = capsys.readouterr().out
    assert "FAIL" in out
    assert "- delegates-call-to(Adapter,Adaptee) violated" in out

    assert main(["verify", "NotAPattern", adapter]) == EXIT_ERROR
    captured = capsys.readouterr()
    assert captured.err.startswith("UnknownPattern: ")
    assert captured.out == ""


def test_verify_reports_missing_snippets(tmp_path: Path, capsys) -> None:
    missing = str(tmp_path / "nope.py")
    assert main(["verify", "Adapter", missing]) == EXIT_ERROR
    assert capsys.readouterr().err.startswith("FactSource: ")


def test_verify_reports_undecodable_snippets(tmp_path: Path, capsys) -> None:
    source = tmp_path / "latin1.py"
    source.write_bytes(b"class Caf\xe9:\n    pass\n")
    assert main(["verify", "Adapter", str(source)]) == EXIT_ERROR
    captured = capsys.readouterr()
    assert captured.err.startswith("FactSource: Cannot read snippet")
    assert captured.out == ""


def test_verify_json_and_yaml_output(capsys) -> None:
    snippet = str(PYTHON_DIR / "observer.py")
    assert main(["--format", "json", "verify", "Observer", snippet]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["pattern"] == "Observer"
    assert payload["snippet"] == "observer"
    assert payload["passed"] is True
    assert payload["binding"]["Subject"] == ["Store"]

    assert main(["--format", "yaml", "verify", "Observer", snippet]) == 0
    payload = yaml.safe_load(capsys.readouterr().out)
    assert payload["passed"] is True
    assert payload["score"] == payload["rules"]


def test_format_from_environment(monkeypatch, capsys) -> None:
    monkeypatch.setenv(FORMAT_ENV_VAR, "JSON")
    assert main(["list-patterns", "--category", "creational"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in payload] == [
        "AbstractFactory",
        "Builder",
        "FactoryMethod",
        "Prototype",
        "Singleton",
    ]

    monkeypatch.setenv(FORMAT_ENV_VAR, "xml")
    assert main(["list-patterns"]) == EXIT_ERROR
    assert capsys.readouterr().err.startswith("TemplateConfig: ")


def test_list_and_show_patterns(capsys) -> None:
    assert main(["list-patterns"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 23
    assert lines[0].split() == ["AbstractFactory", "creational"]

    assert main(["show-pattern", "cor"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("ChainOfResponsibility (behavioral)")
    assert "holds-reference-to(Handler,Handler)" in out

    assert main(["--format", "json", "show-pattern", "Decorator"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["name"] == "Decorator"
    assert payload["category"] == "structural"
    assert {rule["label"] for rule in payload["rules"]} >= {
        "delegates-call-to(Decorator,Component)"
    }


def test_batch_returns_worst_exit_code(tmp_path: Path, capsys) -> None:
    good = str(CANONICAL_DIR / "adapter.yaml")
    python = str(PYTHON_DIR / "adapter.py")
    broken = str(_broken_adapter(tmp_path))
    assert main(["batch", "Adapter", good, python]) == EXIT_PASS
    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[0] for line in lines] == ["PASS", "PASS"]

    argv = ["batch", "Adapter", good, broken, "--workers", "2"]
    assert main(argv) == EXIT_FAIL
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("PASS adapter")
    assert lines[1].startswith("FAIL broken_adapter")
    assert lines[1].endswith("delegates-call-to(Adapter,Adaptee)")

    missing = str(tmp_path / "missing.yaml")
    argv = ["--format", "json", "batch", "Adapter", good, missing, broken]
    assert main(argv) == EXIT_ERROR
    payload = json.loads(capsys.readouterr().out)
    assert [item["snippet"] for item in payload] == [
        "adapter",
        "missing",
        "broken_adapter",
    ]
    assert payload[1]["error"]["kind"] == "FactSource"
    assert payload[2]["verdict"]["passed"] is False


def test_config_file_drives_settings(tmp_path: Path, capsys) -> None:
    templates = tmp_path / "templates.yaml"
    templates.write_text(
        yaml.safe_dump(
            {
                "patterns": [
                    {
                        "name": "Wrapper",
                        "category": "structural",
                        "roles": [{"name": "Outer"}, {"name": "Inner"}],
                        "rules": [
                            {
                                "kind": "holds-reference-to",
                                "source": "Outer",
                                "target": "Inner",
                            }
                        ],
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    config = tmp_path / "config.yaml"
    config.write_text(
        yaml.safe_dump(
            {
                "patterncheck": {
                    "templates": {
                        "builtin": False,
                        "paths": ["templates.yaml"],
                    },
                    "output": {"format": "json"},
                    "logging": {"file": "logs/check.log"},
                }
            }
        ),
        encoding="utf-8",
    )
    argv = ["--config", str(config), "list-patterns"]
    assert main(argv) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == [
        {"name": "Wrapper", "category": "structural", "aliases": []}
    ]
    assert (tmp_path / "logs" / "check.log").exists()


def test_missing_or_invalid_config(tmp_path: Path, capsys) -> None:
    missing = tmp_path / "absent.yaml"
    assert main(["--config", str(missing), "list-patterns"]) == EXIT_ERROR
    assert capsys.readouterr().err.startswith("Config: ")

    bad = tmp_path / "bad.yaml"
    bad.write_text("patterncheck:\n  output:\n    format: xml\n")
    assert main(["--config", str(bad), "list-patterns"]) == EXIT_ERROR
    assert "Unknown output format 'xml'" in capsys.readouterr().err


def test_extra_templates_flag(tmp_path: Path, capsys) -> None:
    extra = tmp_path / "extra.yaml"
    extra.write_text(
        yaml.safe_dump(
            {
                "patterns": [
                    {
                        "name": "Observer",
                        "category": "behavioral",
                        "roles": [{"name": "A"}],
                        "rules": [
                            {
                                "kind": "inherits-from",
                                "source": "A",
                                "target": "A",
                            }
                        ],
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    assert main(["--templates", str(extra), "list-patterns"]) == EXIT_ERROR
    assert capsys.readouterr().err.startswith("DuplicatePattern: ")


def test_log_file_receives_check_logs(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"
    argv = [
        "--log-file",
        str(log_file),
        "verify",
        "Adapter",
        str(CANONICAL_DIR / "adapter.yaml"),
    ]
    assert main(argv) == 0
    logger = logging.getLogger("patterncheck")
    handlers = [
        handler
        for handler in logger.handlers
        if isinstance(handler, RotatingFileHandler)
    ]
    assert len(handlers) == 1
    handlers[0].flush()
    assert "Adapter on adapter: pass" in log_file.read_text()


def test_log_file_does_not_raise_console_verbosity(
    tmp_path: Path, monkeypatch, capsys
) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    log_file = tmp_path / "run.log"
    argv = [
        "--log-file",
        str(log_file),
        "verify",
        "Adapter",
        str(CANONICAL_DIR / "adapter.yaml"),
    ]
    assert main(argv) == EXIT_PASS
    assert [handler.level for handler in root.handlers] == [logging.WARNING]
    for handler in logging.getLogger("patterncheck").handlers:
        handler.flush()
    assert "Adapter on adapter: pass" in log_file.read_text()
    assert "Adapter on adapter" not in capsys.readouterr().err
