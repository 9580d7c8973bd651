"""pipeline.gosyntax

Thin helpers over the tree-sitter Go grammar.

Everything downstream (matcher, guards, injector, extractor) works on byte
offsets of the original file, so this module keeps the raw ``bytes`` next to
the tree and exposes small accessors instead of a parallel AST.

Grammar notes
-------------
* Newer tree-sitter-go releases wrap block contents in a ``statement_list``
  node; older ones put statements directly under ``block``.
  :func:`block_statements` accepts both.
* Comments are "extras" and can appear between any two tokens. They are
  filtered out wherever we count statements or arguments.
"""

from __future__ import annotations

import ast
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser, Tree

GO_LANGUAGE = Language(tree_sitter_go.language())

TESTING_IMPORT_PATH = "testing"
STRING_LITERAL_TYPES = ("interpreted_string_literal", "raw_string_literal")


@dataclass(frozen=True)
class GoSource:
    """A parsed Go file: raw bytes + tree."""

    data: bytes
    tree: Tree
    path: Optional[Path] = None

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.root.has_error

    def text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def line_indent(self, offset: int) -> bytes:
        """Leading whitespace of the line containing *offset*."""
        line_start = self.data.rfind(b"\n", 0, offset) + 1
        end = line_start
        while end < len(self.data) and self.data[end : end + 1] in (b" ", b"\t"):
            end += 1
        return self.data[line_start:end]

    def starts_own_line(self, node: Node) -> bool:
        line_start = self.data.rfind(b"\n", 0, node.start_byte) + 1
        return self.data[line_start : node.start_byte].strip() == b""


def parse_go(data: bytes, path: Optional[Path] = None) -> GoSource:
    # A parser per call: parsers are cheap and not safe to share across threads.
    parser = Parser(GO_LANGUAGE)
    return GoSource(data=data, tree=parser.parse(data), path=path)


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def is_comment(node: Node) -> bool:
    return node.type == "comment"


def named_children(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    return [c for c in node.named_children if not is_comment(c)]


def block_statements(block: Node) -> List[Node]:
    out: List[Node] = []
    for child in block.named_children:
        if child.type == "statement_list":
            out.extend(named_children(child))
        elif not is_comment(child):
            out.append(child)
    return out


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of named nodes without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------


def is_string_literal(node: Optional[Node]) -> bool:
    return node is not None and node.type in STRING_LITERAL_TYPES


def string_value(src: GoSource, node: Node) -> Optional[str]:
    """Decoded value of a Go string literal, or None if it is not one."""
    if not is_string_literal(node):
        return None
    raw = src.text(node)
    if node.type == "raw_string_literal":
        return raw[1:-1].replace("\r", "")
    try:
        value = json.loads(raw)
    except ValueError:
        # Go escapes JSON lacks (\a, \v, \x41, octal) read the same in Python.
        try:
            value = ast.literal_eval(raw)
        except (ValueError, SyntaxError):
            return None
    return value if isinstance(value, str) else None


def go_quote(value: str) -> str:
    """Render *value* as a Go interpreted string literal.

    JSON string escapes are a subset of Go's, so json.dumps output is valid Go.
    """
    return json.dumps(value, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Expressions and types
# ---------------------------------------------------------------------------


def call_selector(src: GoSource, node: Optional[Node]) -> Optional[Tuple[Node, str, List[Node]]]:
    """For ``x.Method(args...)`` return (operand node, "Method", args)."""
    if node is None or node.type != "call_expression":
        return None
    fn = node.child_by_field_name("function")
    if fn is None or fn.type != "selector_expression":
        return None
    operand = fn.child_by_field_name("operand")
    field = fn.child_by_field_name("field")
    if operand is None or field is None:
        return None
    return operand, src.text(field), named_children(node.child_by_field_name("arguments"))


def binary_operator(src: GoSource, node: Node) -> Optional[str]:
    if node.type != "binary_expression":
        return None
    op = node.child_by_field_name("operator")
    return src.text(op) if op is not None else None


def parameters(src: GoSource, param_list: Optional[Node]) -> List[Tuple[Optional[str], Node]]:
    """Flatten a parameter list into (name or None, type node) pairs.

    ``a, b *testing.T`` yields two entries. Variadic parameters keep the
    declaration node as their "type" so no pointer check ever accepts them.
    """
    out: List[Tuple[Optional[str], Node]] = []
    for decl in named_children(param_list):
        if decl.type == "variadic_parameter_declaration":
            name = decl.child_by_field_name("name")
            out.append((src.text(name) if name is not None else None, decl))
            continue
        if decl.type != "parameter_declaration":
            continue
        type_node = decl.child_by_field_name("type")
        if type_node is None:
            continue
        names = decl.children_by_field_name("name")
        if not names:
            out.append((None, type_node))
        for name in names:
            out.append((src.text(name), type_node))
    return out


def is_pointer_to(src: GoSource, type_node: Node, package_names: Set[str], type_name: str) -> bool:
    """True for ``*pkg.TypeName`` where pkg is one of *package_names*."""
    if type_node.type == "parenthesized_type":
        inner = named_children(type_node)
        return bool(inner) and is_pointer_to(src, inner[0], package_names, type_name)
    if type_node.type != "pointer_type":
        return False
    inner = named_children(type_node)
    if not inner or inner[0].type != "qualified_type":
        return False
    pkg = inner[0].child_by_field_name("package")
    name = inner[0].child_by_field_name("name")
    if pkg is None or name is None:
        return False
    return src.text(pkg) in package_names and src.text(name) == type_name


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


def import_specs(src: GoSource) -> List[Node]:
    specs: List[Node] = []
    for decl in src.root.named_children:
        if decl.type != "import_declaration":
            continue
        for child in named_children(decl):
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(c for c in named_children(child) if c.type == "import_spec")
    return specs


def import_local_name(src: GoSource, spec: Node) -> Optional[str]:
    """Identifier an import is referenced by; None for dot and blank imports."""
    path_node = spec.child_by_field_name("path")
    path = string_value(src, path_node) if path_node is not None else None
    if path is None:
        return None
    name = spec.child_by_field_name("name")
    if name is None:
        return path.rsplit("/", 1)[-1]
    if name.type in ("dot", "blank_identifier"):
        return None
    return src.text(name)


def find_import_spec(src: GoSource, import_path: str) -> Optional[Node]:
    for spec in import_specs(src):
        path_node = spec.child_by_field_name("path")
        if path_node is not None and string_value(src, path_node) == import_path:
            return spec
    return None


def testing_package_names(src: GoSource) -> Set[str]:
    """Local names bound to the standard "testing" package in this file."""
    names: Set[str] = set()
    for spec in import_specs(src):
        path_node = spec.child_by_field_name("path")
        if path_node is None or string_value(src, path_node) != TESTING_IMPORT_PATH:
            continue
        local = import_local_name(src, spec)
        if local:
            names.add(local)
    return names


def top_level_functions(src: GoSource) -> List[Node]:
    return [n for n in src.root.named_children if n.type == "function_declaration"]


def function_name(src: GoSource, decl: Node) -> Optional[str]:
    name = decl.child_by_field_name("name")
    return src.text(name) if name is not None else None
