"""pipeline.guards

The code we insert, and how we recognise it again later.

Guards are matched by shape, never by text diffing. Each shape carries the
marker :data:`QUARANTINE_MARKER` in its skip message, which is what makes it
"ours" and safe to remove.

Whole-function guard (first statement of a test body)::

    t.Skip("Flaky test quarantined. Ticket PROJ-1. Done automatically by goquarantine")

Subtest guard (first statement of a subtest callback)::

    if t.Name() == "TestTable/case_1" || t.Name() == "TestTable/case_2" {
        t.Skip("Flaky test quarantined. Ticket PROJ-1. Done automatically by goquarantine")
    }

Legacy guard, only ever removed::

    if os.Getenv("RUN_QUARANTINED_TESTS") != "true" {
        t.Skip(...)
    } else {
        t.Logf(...)
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from tree_sitter import Node

from .gosyntax import (
    GoSource,
    binary_operator,
    block_statements,
    call_selector,
    go_quote,
    is_string_literal,
    named_children,
    string_value,
)

QUARANTINE_MARKER = "Done automatically by goquarantine"
SKIP_METHODS = ("Skip", "Skipf")

LEGACY_ENV_VAR = "RUN_QUARANTINED_TESTS"


def skip_message(reason: str = "") -> str:
    reason = (reason or "").strip()
    if reason:
        return f"Flaky test quarantined. Ticket {reason}. {QUARANTINE_MARKER}"
    return f"Flaky test quarantined. {QUARANTINE_MARKER}"


def render_skip_call(param_name: str, reason: str = "") -> str:
    return f"{param_name}.Skip({go_quote(skip_message(reason))})"


def render_name_condition(param_name: str, names: Sequence[str]) -> str:
    return " || ".join(f"{param_name}.Name() == {go_quote(n)}" for n in names)


def render_subtest_guard(param_name: str, names: Sequence[str], reason: str = "") -> str:
    """Guard text without outer indentation; nested lines use one tab."""
    return "\n".join(
        [
            f"if {render_name_condition(param_name, names)} {{",
            f"\t{render_skip_call(param_name, reason)}",
            "}",
        ]
    )


# ---------------------------------------------------------------------------
# Recognition
# ---------------------------------------------------------------------------


def is_skip_guard(src: GoSource, stmt: Optional[Node]) -> bool:
    """``x.Skip("...marker...")`` as a statement."""
    if stmt is None or stmt.type != "expression_statement":
        return False
    exprs = named_children(stmt)
    if len(exprs) != 1:
        return False
    sel = call_selector(src, exprs[0])
    if sel is None:
        return False
    _, method, args = sel
    if method not in SKIP_METHODS or not args or not is_string_literal(args[0]):
        return False
    return QUARANTINE_MARKER in src.text(args[0])


def is_legacy_env_guard(src: GoSource, stmt: Optional[Node]) -> bool:
    """``if os.Getenv("RUN_QUARANTINED_TESTS") != "true" { ... }``"""
    if stmt is None or stmt.type != "if_statement":
        return False
    if stmt.child_by_field_name("initializer") is not None:
        return False
    cond = stmt.child_by_field_name("condition")
    if cond is None or binary_operator(src, cond) != "!=":
        return False
    left = cond.child_by_field_name("left")
    right = cond.child_by_field_name("right")
    sel = call_selector(src, left)
    if sel is None or right is None:
        return False
    operand, method, args = sel
    if src.text(operand) != "os" or method != "Getenv" or len(args) != 1:
        return False
    return string_value(src, args[0]) == LEGACY_ENV_VAR and string_value(src, right) == "true"


def is_whole_function_guard(src: GoSource, stmt: Optional[Node]) -> bool:
    return is_skip_guard(src, stmt) or is_legacy_env_guard(src, stmt)


@dataclass(frozen=True)
class SubtestGuard:
    node: Node
    condition: Node
    names: List[str]


def _compared_names(src: GoSource, cond: Node, param_name: str) -> Optional[List[str]]:
    op = binary_operator(src, cond)
    if op == "||":
        left = cond.child_by_field_name("left")
        right = cond.child_by_field_name("right")
        if left is None or right is None:
            return None
        lhs = _compared_names(src, left, param_name)
        rhs = _compared_names(src, right, param_name)
        if lhs is None or rhs is None:
            return None
        return lhs + rhs
    if op == "==":
        sel = call_selector(src, cond.child_by_field_name("left"))
        right = cond.child_by_field_name("right")
        if sel is None or right is None:
            return None
        operand, method, args = sel
        if src.text(operand) != param_name or method != "Name" or args:
            return None
        value = string_value(src, right)
        return [value] if value is not None else None
    return None


def parse_subtest_guard(src: GoSource, stmt: Optional[Node], param_name: str) -> Optional[SubtestGuard]:
    if stmt is None or stmt.type != "if_statement":
        return None
    if stmt.child_by_field_name("initializer") is not None:
        return None
    if stmt.child_by_field_name("alternative") is not None:
        return None
    cond = stmt.child_by_field_name("condition")
    consequence = stmt.child_by_field_name("consequence")
    if cond is None or consequence is None:
        return None

    names = _compared_names(src, cond, param_name)
    if not names:
        return None

    body = block_statements(consequence)
    if len(body) != 1 or not is_skip_guard(src, body[0]):
        return None
    return SubtestGuard(node=stmt, condition=cond, names=names)
