"""tools/golang

Go toolchain adapter: package discovery through ``go list``.

This package contains the implementation: runner (command line + env) and
packages (module discovery + JSON decoding).
"""

from __future__ import annotations

from .packages import (
    PackageInfo,
    PackagesInfo,
    find_go_mod_dirs,
    load_module_packages,
    load_packages,
    parse_go_list_output,
)
from .runner import GO_FALLBACKS, build_go_list_command, go_version, run_go_list

__all__ = [
    "GO_FALLBACKS",
    "PackageInfo",
    "PackagesInfo",
    "build_go_list_command",
    "find_go_mod_dirs",
    "go_version",
    "load_module_packages",
    "load_packages",
    "parse_go_list_output",
    "run_go_list",
]
