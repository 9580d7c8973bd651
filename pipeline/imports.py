"""pipeline.imports

Drop an import that no longer has any users.

Only needed after removing the legacy env-gated guard, which was the sole
user of ``"os"`` in many test files. Go refuses to compile unused imports, so
leaving it behind would break the package.
"""

from __future__ import annotations

from typing import Optional

from .edits import SourceEdit
from .gosyntax import GoSource, find_import_spec, import_local_name, named_children, walk


def is_package_used(src: GoSource, local_name: str) -> bool:
    for node in walk(src.root):
        if node.type == "selector_expression":
            operand = node.child_by_field_name("operand")
            if operand is not None and operand.type == "identifier" and src.text(operand) == local_name:
                return True
        elif node.type == "qualified_type":
            pkg = node.child_by_field_name("package")
            if pkg is not None and src.text(pkg) == local_name:
                return True
    return False


def remove_import_if_unused(src: GoSource, import_path: str) -> Optional[SourceEdit]:
    spec = find_import_spec(src, import_path)
    if spec is None:
        return None
    local = import_local_name(src, spec)
    # Dot and blank imports have side effects or no name to check.
    if local is None or is_package_used(src, local):
        return None

    data = src.data
    decl = spec.parent
    if decl is not None and decl.type == "import_spec_list":
        decl = decl.parent
    if decl is None:
        return None

    siblings = [
        s
        for child in named_children(decl)
        for s in ([child] if child.type == "import_spec" else named_children(child))
        if s.type == "import_spec"
    ]
    if len(siblings) == 1:
        end = decl.end_byte
        while end < len(data) and data[end : end + 1] in (b" ", b"\t", b"\r", b"\n"):
            end += 1
        return SourceEdit(decl.start_byte, end, b"")

    line_start = data.rfind(b"\n", 0, spec.start_byte) + 1
    eol = data.find(b"\n", spec.end_byte)
    eol = len(data) if eol == -1 else eol
    if data[line_start : spec.start_byte].strip() == b"" and data[spec.end_byte : eol].strip() == b"":
        return SourceEdit(line_start, min(eol + 1, len(data)), b"")

    end = spec.end_byte
    while end < len(data) and data[end : end + 1] in (b" ", b"\t", b";"):
        end += 1
    return SourceEdit(spec.start_byte, end, b"")
