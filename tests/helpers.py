"""Fixture paths and loaders shared by the test modules."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

FIXTURES = Path(__file__).resolve().parent / "fixtures"
CANONICAL_DIR = FIXTURES / "canonical"
PYTHON_DIR = FIXTURES / "python"

# Canonical fixture file for each builtin template.
CANONICAL_FIXTURES = {
    "AbstractFactory": "abstract_factory",
    "Builder": "builder",
    "FactoryMethod": "factory_method",
    "Prototype": "prototype",
    "Singleton": "singleton",
    "Adapter": "adapter",
    "Bridge": "bridge",
    "Composite": "composite",
    "Decorator": "decorator",
    "Facade": "facade",
    "Flyweight": "flyweight",
    "Proxy": "proxy",
    "ChainOfResponsibility": "chain_of_responsibility",
    "Command": "command",
    "Interpreter": "interpreter",
    "Iterator": "iterator",
    "Mediator": "mediator",
    "Memento": "memento",
    "Observer": "observer",
    "State": "state",
    "Strategy": "strategy",
    "TemplateMethod": "template_method",
    "Visitor": "visitor",
}


def load_canonical_data(stem: str) -> Dict[str, Any]:
    path = CANONICAL_DIR / f"{stem}.yaml"
    return deepcopy(yaml.safe_load(path.read_text(encoding="utf-8")))
