import ast
import unittest
from pathlib import Path
from typing import Iterable, List, Tuple


REPO_ROOT = Path(__file__).resolve().parents[1]

# Layering, bottom to top: goquarantine (domain, errors, io) -> tools -> pipeline -> cli.
FORBIDDEN_IMPORTS = {
    "goquarantine": ("tools", "pipeline", "cli"),
    "tools": ("pipeline", "cli"),
    "pipeline": ("cli",),
}


def iter_py_files(package_dir: Path) -> Iterable[Path]:
    for p in package_dir.rglob("*.py"):
        if "__pycache__" in p.parts or any(part.startswith(".") for part in p.parts):
            continue
        yield p


def imported_roots(py_file: Path) -> List[Tuple[str, str]]:
    """(root package, full module) for every absolute import in *py_file*."""
    tree = ast.parse(py_file.read_text(encoding="utf-8", errors="ignore"), filename=str(py_file))

    out: List[Tuple[str, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            out.extend((alias.name.split(".", 1)[0], alias.name) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            out.append((node.module.split(".", 1)[0], node.module))
    return out


class TestDependencyBoundaries(unittest.TestCase):
    def test_layers_only_import_downwards(self) -> None:
        problems: List[str] = []

        for pkg, forbidden in FORBIDDEN_IMPORTS.items():
            pkg_dir = REPO_ROOT / pkg
            self.assertTrue(pkg_dir.is_dir(), f"missing package dir: {pkg}")

            for py_file in iter_py_files(pkg_dir):
                bad = [module for root, module in imported_roots(py_file) if root in forbidden]
                if bad:
                    problems.append(f"{py_file.relative_to(REPO_ROOT)} imports {bad}")

        if problems:
            self.fail("Imports against the layering:\n" + "\n".join(problems))

    def test_tree_sitter_stays_in_pipeline(self) -> None:
        for pkg in ("goquarantine", "tools", "cli"):
            for py_file in iter_py_files(REPO_ROOT / pkg):
                roots = {root for root, _ in imported_roots(py_file)}
                self.assertFalse(
                    roots & {"tree_sitter", "tree_sitter_go"},
                    f"{py_file.relative_to(REPO_ROOT)} imports tree-sitter",
                )


if __name__ == "__main__":
    unittest.main()
