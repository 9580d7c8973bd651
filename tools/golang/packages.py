"""tools/golang/packages.py

Resolve Go package import paths to the test files that declare them.

Resolution is delegated to ``go list`` so module boundaries, ``replace``
directives and build constraints follow the Go toolchain's own rules. The
root may hold several modules (nested ``go.mod`` files); each one is listed
separately because ``./...`` stops at module boundaries.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from goquarantine.errors import PackageLoadError
from tools.core_cmd import CmdResult, which_or_raise

from .runner import GO_FALLBACKS, run_go_list

logger = logging.getLogger(__name__)

# The go command ignores these directories when matching ./...
SKIP_DIR_NAMES = {"vendor", "testdata"}


@dataclass(frozen=True)
class PackageInfo:
    """What ``go list`` knows about one package, reduced to what we need."""

    import_path: str
    name: str = ""
    dir: Optional[Path] = None
    go_files: List[str] = field(default_factory=list)
    test_go_files: List[str] = field(default_factory=list)
    x_test_go_files: List[str] = field(default_factory=list)
    module: Optional[str] = None
    is_command: bool = False
    error: Optional[str] = None

    @classmethod
    def from_go_list(cls, d: Mapping[str, Any]) -> "PackageInfo":
        pkg_dir = Path(str(d["Dir"])) if d.get("Dir") else None

        def _files(key: str) -> List[str]:
            names = d.get(key) or []
            if pkg_dir is None:
                return [str(n) for n in names]
            return [str(pkg_dir / str(n)) for n in names]

        module = d.get("Module")
        err = d.get("Error")
        return cls(
            import_path=str(d.get("ImportPath") or ""),
            name=str(d.get("Name") or ""),
            dir=pkg_dir,
            go_files=_files("GoFiles"),
            test_go_files=_files("TestGoFiles"),
            x_test_go_files=_files("XTestGoFiles"),
            module=str(module.get("Path")) if isinstance(module, Mapping) and module.get("Path") else None,
            is_command=d.get("Name") == "main",
            error=str(err.get("Err")) if isinstance(err, Mapping) and err.get("Err") else None,
        )

    def test_files(self) -> List[str]:
        """In-package and external (``_test`` package) test files, in go list order."""
        return list(self.test_go_files) + list(self.x_test_go_files)

    def describe(self) -> str:
        lines = [self.import_path, f"Name: {self.name}", f"Dir: {self.dir}"]
        if self.go_files:
            lines.append(f"GoFiles: {self.go_files}")
        if self.test_go_files:
            lines.append(f"TestGoFiles: {self.test_go_files}")
        if self.x_test_go_files:
            lines.append(f"XTestGoFiles: {self.x_test_go_files}")
        lines.append(f"Module: {self.module}")
        lines.append(f"IsCommand: {self.is_command}")
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)


@dataclass
class PackagesInfo:
    packages: Dict[str, PackageInfo] = field(default_factory=dict)

    def get(self, import_path: str) -> Optional[PackageInfo]:
        # Import path must be the full path, not just the package name.
        return self.packages.get(import_path)

    def __contains__(self, import_path: object) -> bool:
        return import_path in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    def describe(self) -> str:
        return "\n\n".join(["All packages:"] + [p.describe() for p in self.packages.values()])


def find_go_mod_dirs(root_dir: Path) -> List[Path]:
    """Return every directory under *root_dir* that holds a go.mod, sorted."""
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_dir):
        # Prune in place so os.walk does not descend.
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in SKIP_DIR_NAMES)
        if "go.mod" in filenames:
            found.append(Path(dirpath))
    return sorted(found)


def iter_json_stream(text: str) -> Iterator[Dict[str, Any]]:
    """Decode the concatenated JSON objects ``go list -json`` prints."""
    decoder = json.JSONDecoder()
    idx = 0
    end = len(text)
    while True:
        while idx < end and text[idx].isspace():
            idx += 1
        if idx >= end:
            return
        obj, idx = decoder.raw_decode(text, idx)
        if isinstance(obj, dict):
            yield obj


def parse_go_list_output(text: str) -> Dict[str, PackageInfo]:
    out: Dict[str, PackageInfo] = {}
    for raw in iter_json_stream(text):
        info = PackageInfo.from_go_list(raw)
        if not info.import_path:
            continue
        out[info.import_path] = info
    return out


GoListRunner = Callable[..., CmdResult]


def load_module_packages(
    module_dir: Path,
    *,
    go_bin: str,
    build_flags: Sequence[str] = (),
    timeout_seconds: int = 0,
    runner: GoListRunner = run_go_list,
) -> Dict[str, PackageInfo]:
    """List all packages of the module rooted at *module_dir*."""
    try:
        res = runner(
            go_bin=go_bin,
            module_dir=module_dir,
            build_flags=list(build_flags),
            timeout_seconds=timeout_seconds,
        )
    except subprocess.TimeoutExpired as e:
        raise PackageLoadError(f"go list timed out after {timeout_seconds}s in module {module_dir}") from e

    if not res.ok:
        raise PackageLoadError(
            f"failed to load packages from module {module_dir} "
            f"(exit {res.exit_code}): {res.command_str}\n{res.stderr_tail()}"
        )

    try:
        packages = parse_go_list_output(res.stdout)
    except ValueError as e:
        raise PackageLoadError(f"could not decode go list output for module {module_dir}: {e}") from e

    for info in packages.values():
        if info.error:
            logger.warning("Package %s loaded with errors: %s", info.import_path, info.error)
    return packages


def load_packages(
    root_dir: Path,
    build_flags: Sequence[str] = (),
    *,
    go_bin: str = "go",
    timeout_seconds: int = 0,
    runner: GoListRunner = run_go_list,
    resolve_bin: bool = True,
) -> PackagesInfo:
    """Find all Go packages in *root_dir*, including nested modules.

    ``build_flags`` are passed to the go command unchanged, e.g.
    ``["-tags", "integration"]``.
    """
    root = Path(root_dir).resolve()
    t0 = time.time()
    logger.debug("Loading packages under %s (build flags: %s)", root, list(build_flags))

    mod_dirs = find_go_mod_dirs(root)
    if not mod_dirs:
        logger.warning("No go.mod files found under %s", root)
        return PackagesInfo()

    logger.debug("Found Go module directories: %s", [str(d) for d in mod_dirs])

    # Only resolve the binary when there is something to list.
    if resolve_bin:
        try:
            go_bin = which_or_raise(go_bin, fallbacks=GO_FALLBACKS)
        except FileNotFoundError as e:
            raise PackageLoadError(str(e)) from e

    result = PackagesInfo()
    for mod_dir in mod_dirs:
        module_packages = load_module_packages(
            mod_dir,
            go_bin=go_bin,
            build_flags=build_flags,
            timeout_seconds=timeout_seconds,
            runner=runner,
        )
        for import_path, info in module_packages.items():
            if import_path in result.packages:
                logger.warning("Package %s found in more than one module, using %s", import_path, mod_dir)
            result.packages[import_path] = info

    for info in result.packages.values():
        logger.debug(
            "Found package %s (dir=%s, test files=%d, module=%s)",
            info.import_path,
            info.dir,
            len(info.test_files()),
            info.module,
        )
    logger.debug("Found %d packages in %.2fs", len(result), time.time() - t0)
    return result
