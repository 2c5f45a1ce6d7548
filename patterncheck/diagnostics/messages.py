"""Static translation table from rule/reason identifiers to diagnostics."""

from __future__ import annotations

from typing import Dict

from patterncheck.constants import (
    REASON_MISSING_EDGE,
    REASON_ORDERING,
    REASON_UNBOUND_ROLE,
    REL_DELEGATES_CALL,
    REL_HOLDS_REFERENCE,
    REL_IMPLEMENTS_CAPABILITY,
    REL_INHERITS_FROM,
    REL_INSTANTIATES,
)

RULE_MESSAGES: Dict[str, str] = {
    REL_INHERITS_FROM: "{{ source }} must inherit from {{ target }}",
    REL_IMPLEMENTS_CAPABILITY: (
        "{{ source }} must offer the public methods of {{ target }}"
    ),
    REL_HOLDS_REFERENCE: "{{ source }} must hold a reference to {{ target }}",
    REL_DELEGATES_CALL: "{{ source }} must delegate a call to {{ target }}",
    REL_INSTANTIATES: "{{ source }} must create instances of {{ target }}",
}

REASON_MESSAGES: Dict[str, str] = {
    REASON_UNBOUND_ROLE: "no type could be bound to {{ detail }}",
    REASON_MISSING_EDGE: "the edge is missing for {{ detail }}",
    REASON_ORDERING: (
        "the call from {{ detail }} is out of order "
        "(expected {{ ordering }})"
    ),
}

VIOLATION_LINE = "{{ label }} violated: {{ rule }}; {{ reason }}"
SATISFIED_LINE = "{{ label }} satisfied"
PASS_LINE = "{{ pattern }}: conforms with binding {{ binding }}"
FAIL_LINE = (
    "{{ pattern }}: does not conform; closest binding {{ binding }} "
    "satisfies {{ score }} of {{ total }} rules"
)

__all__ = [
    "RULE_MESSAGES",
    "REASON_MESSAGES",
    "VIOLATION_LINE",
    "SATISFIED_LINE",
    "PASS_LINE",
    "FAIL_LINE",
]
