from __future__ import annotations

import pytest

from pipeline.edits import SourceEdit, apply_edits, indent_lines, insert_first_statement, remove_statement
from pipeline.gosyntax import block_statements, parse_go, top_level_functions


def _body(source: bytes):
    src = parse_go(source)
    decl = top_level_functions(src)[0]
    return src, decl.child_by_field_name("body")


def test_apply_edits_back_to_front() -> None:
    data = b"abcdef"
    edits = [SourceEdit(4, 5, b"E"), SourceEdit(0, 1, b"AA"), SourceEdit(2, 2, b"+")]

    assert apply_edits(data, edits) == b"AAb+cdEf"


def test_apply_edits_rejects_overlap() -> None:
    with pytest.raises(ValueError):
        apply_edits(b"abcdef", [SourceEdit(0, 3), SourceEdit(2, 4)])


def test_indent_lines() -> None:
    assert indent_lines("a {\n\tb\n}", b"\t\t") == b"a {\n\t\t\tb\n\t\t}"


def test_insert_after_trailing_brace_comment() -> None:
    source = b"package p\n\nfunc f() { // note\n\tg()\n}\n"
    src, body = _body(source)

    edit = insert_first_statement(src, body, "h()")

    assert apply_edits(source, [edit]) == b"package p\n\nfunc f() { // note\n\th()\n\tg()\n}\n"


def test_insert_keeps_space_indentation_of_first_statement() -> None:
    source = b"package p\n\nfunc f() {\n    g()\n}\n"
    src, body = _body(source)

    edit = insert_first_statement(src, body, "h()")

    assert apply_edits(source, [edit]) == b"package p\n\nfunc f() {\n    h()\n    g()\n}\n"


def test_remove_statement_sharing_a_line() -> None:
    source = b"package p\n\nfunc f() {\n\th(); g()\n}\n"
    src, body = _body(source)
    first = block_statements(body)[0]

    edit = remove_statement(src, body, first)

    assert apply_edits(source, [edit]) == b"package p\n\nfunc f() {\n\tg()\n}\n"
