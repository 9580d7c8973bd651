"""pipeline.subtests

Find subtest callbacks inside a test function body.

A subtest callback is the function literal passed as the second argument of
``x.Run(name, func(p *testing.T) { ... })``. Callbacks nest: a ``Run`` inside
a callback creates a grandchild subtest. ``depth`` counts that nesting.

The testing package does not escape ``/`` inside a subtest name, so
``TestFoo/a/b`` is either two levels (``a`` then ``b``) or one level named
``a/b``. Matching therefore walks the name parts level by level: a static name
consumes as many parts as it has ``/``-separated pieces, a computed name
consumes one or more.

When the ``name`` argument is a string literal we know the subtest name
statically and use it to narrow the candidates. Computed names (loop
variables, ``fmt.Sprintf``) cannot be known here, so those callbacks always
qualify and the runtime guard does the final selection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from tree_sitter import Node

from .gosyntax import GoSource, call_selector, is_pointer_to, is_string_literal, parameters, string_value

RUN_METHOD = "Run"

_DEDUP_SUFFIX_RE = re.compile(r"#\d+$")


def rewrite_subtest_name(name: str) -> str:
    """Apply the testing package's name rewrite: whitespace becomes ``_``."""
    return "".join("_" if ch.isspace() else ch for ch in name)


def component_matches(static_name: str, component: str) -> bool:
    rewritten = rewrite_subtest_name(static_name)
    if component == rewritten:
        return True
    # Duplicate subtest names get a "#01", "#02" suffix at run time.
    return component.startswith(rewritten) and bool(_DEDUP_SUFFIX_RE.fullmatch(component[len(rewritten) :]))


def _match_levels(path: Sequence[Optional[str]], parts: Sequence[str]) -> bool:
    """Can the per-level names in *path* produce exactly *parts*?"""
    if not path:
        return not parts
    head, rest = path[0], path[1:]
    # Every remaining level needs at least one part.
    most = len(parts) - len(rest)
    if most < 1:
        return False
    if head is not None:
        width = rewrite_subtest_name(head).count("/") + 1
        if width > most:
            return False
        return component_matches(head, "/".join(parts[:width])) and _match_levels(rest, parts[width:])
    return any(_match_levels(rest, parts[width:]) for width in range(1, most + 1))


@dataclass(frozen=True)
class SubtestCallback:
    call: Node
    literal: Node
    body: Node
    param_name: Optional[str]
    depth: int
    # One entry per level down to this callback; None where the name is computed.
    static_path: Tuple[Optional[str], ...]

    def matches(self, components: Sequence[str]) -> bool:
        """*components* are the ``/``-separated parts after the function name."""
        return _match_levels(self.static_path, components)

    @property
    def usable(self) -> bool:
        return bool(self.param_name) and self.param_name != "_"


def _as_run_callback(src: GoSource, node: Node, testing_names: Set[str]):
    sel = call_selector(src, node)
    if sel is None:
        return None
    _, method, args = sel
    if method != RUN_METHOD or len(args) != 2:
        return None
    literal = args[1]
    if literal.type != "func_literal":
        return None
    params = parameters(src, literal.child_by_field_name("parameters"))
    if len(params) != 1 or not is_pointer_to(src, params[0][1], testing_names, "T"):
        return None
    body = literal.child_by_field_name("body")
    if body is None:
        return None
    static = string_value(src, args[0]) if is_string_literal(args[0]) else None
    return literal, body, params[0][0], static


def find_subtest_callbacks(src: GoSource, body: Node, testing_names: Set[str]) -> List[SubtestCallback]:
    """All subtest callbacks under *body*, in source order."""
    found: List[SubtestCallback] = []
    stack: List[Tuple[Node, Tuple[Optional[str], ...]]] = [(body, ())]
    while stack:
        node, path = stack.pop()
        cb = _as_run_callback(src, node, testing_names) if node.type == "call_expression" else None
        if cb is None:
            stack.extend((child, path) for child in node.named_children)
            continue

        literal, cb_body, param_name, static = cb
        cb_path = path + (static,)
        found.append(
            SubtestCallback(
                call=node,
                literal=literal,
                body=cb_body,
                param_name=param_name,
                depth=len(cb_path),
                static_path=cb_path,
            )
        )
        stack.append((cb_body, cb_path))

    found.sort(key=lambda c: c.literal.start_byte)
    return found
