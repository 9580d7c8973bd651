"""pipeline.edits

Byte-range edits on a Go source file.

Every rewrite is expressed as a list of :class:`SourceEdit` splices against
the original bytes and applied back to front. Bytes outside the edited ranges
are never touched, which is what keeps formatting, comments and unrelated
code byte-identical.

Insertion and removal are written as inverses of each other so that
quarantine followed by unquarantine gives back the original file, including
one-line callbacks like ``func(t *testing.T) { helper(t) }``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from tree_sitter import Node

from .gosyntax import GoSource, block_statements, is_comment


@dataclass(frozen=True)
class SourceEdit:
    start: int
    end: int
    text: bytes = b""


def apply_edits(data: bytes, edits: Iterable[SourceEdit]) -> bytes:
    ordered = sorted(edits, key=lambda e: (e.start, e.end))
    for prev, cur in zip(ordered, ordered[1:]):
        if cur.start < prev.end:
            raise ValueError(f"overlapping edits: [{prev.start}, {prev.end}) and [{cur.start}, {cur.end})")

    out = data
    for edit in reversed(ordered):
        out = out[: edit.start] + edit.text + out[edit.end :]
    return out


def indent_lines(text: str, indent: bytes) -> bytes:
    """Encode *text*, indenting every line after the first with *indent*."""
    return (b"\n" + indent).join(line.encode("utf-8") for line in text.split("\n"))


def replace_node(node: Node, text: str) -> SourceEdit:
    return SourceEdit(node.start_byte, node.end_byte, text.encode("utf-8"))


def _block_items(block: Node) -> List[Node]:
    """Statements and comments inside a block, in source order."""
    out: List[Node] = []
    for child in block.named_children:
        if child.type == "statement_list":
            out.extend(child.named_children)
        else:
            out.append(child)
    out.sort(key=lambda n: n.start_byte)
    return out


def _same(a: Node, b: Node) -> bool:
    return a.start_byte == b.start_byte and a.end_byte == b.end_byte


def _line_end(data: bytes, offset: int) -> int:
    eol = data.find(b"\n", offset)
    return len(data) if eol == -1 else eol


def insert_first_statement(src: GoSource, block: Node, text: str) -> SourceEdit:
    """Edit that makes *text* the first statement of *block*."""
    data = src.data
    brace_end = block.start_byte + 1
    close = block.end_byte - 1
    items = _block_items(block)
    first = items[0] if items else None

    base_indent = src.line_indent(block.start_byte)
    if first is not None and src.starts_own_line(first):
        indent = src.line_indent(first.start_byte)
    else:
        indent = base_indent + b"\t"
    body = indent_lines(text, indent)

    if block.start_point[0] == block.end_point[0]:
        if first is None:
            # {}
            return SourceEdit(brace_end, close, b"\n" + indent + body + b"\n" + base_indent)
        # { helper(t) }
        return SourceEdit(brace_end, first.start_byte, b"\n" + indent + body + b"\n" + indent)

    eol = _line_end(data, brace_end)
    if data[brace_end:eol].strip() == b"":
        return SourceEdit(brace_end, brace_end, b"\n" + indent + body)

    if first is not None and is_comment(first) and first.end_byte <= eol and data[first.end_byte : eol].strip() == b"":
        # {  // trailing comment
        return SourceEdit(eol, eol, b"\n" + indent + body)

    return SourceEdit(brace_end, first.start_byte if first is not None else eol, b"\n" + indent + body + b"\n" + indent)


def remove_statement(src: GoSource, block: Node, stmt: Node) -> SourceEdit:
    """Edit that removes *stmt* from *block*, undoing :func:`insert_first_statement`."""
    data = src.data
    brace_end = block.start_byte + 1
    close = block.end_byte - 1
    items = _block_items(block)
    stmts = block_statements(block)

    # "{}" and "{\n}" quarantine to the same text; both come back as "{}".
    if (
        len(items) == 1
        and _same(items[0], stmt)
        and data[brace_end : stmt.start_byte].strip() == b""
        and data[stmt.end_byte : close].strip() == b""
    ):
        return SourceEdit(brace_end, close, b"")

    if len(items) >= 2 and _same(items[0], stmt) and not is_comment(items[1]):
        nxt = items[1]
        last = stmts[-1]
        if (
            b"\n" in data[brace_end : stmt.start_byte]
            and nxt.start_point[0] == stmt.end_point[0] + 1
            and last.end_point[0] == block.end_point[0]
            and data[last.end_byte : close].strip() == b""
            and not any(is_comment(i) for i in items)
        ):
            return SourceEdit(brace_end, nxt.start_byte, b" ")

    line_start = data.rfind(b"\n", 0, stmt.start_byte) + 1
    eol = _line_end(data, stmt.end_byte)
    if data[line_start : stmt.start_byte].strip() == b"" and data[stmt.end_byte : eol].strip() == b"":
        return SourceEdit(line_start, min(eol + 1, len(data)), b"")

    end = stmt.end_byte
    while end < len(data) and data[end : end + 1] in (b" ", b"\t", b";"):
        end += 1
    return SourceEdit(stmt.start_byte, end, b"")
