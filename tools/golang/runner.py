"""tools/golang/runner.py

Tool-specific execution plumbing for the ``go`` command.
Keeps ``go list`` flags and environment quirks close to the tool.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from tools.core_cmd import CmdResult, run_cmd

GO_FALLBACKS = ["/usr/local/go/bin/go", "/opt/homebrew/bin/go", "/usr/lib/go/bin/go"]

# Each module is listed on its own; a go.work file in the checkout would
# otherwise pull sibling modules into ./... and change import resolution.
GO_LIST_ENV = {"GOWORK": "off"}


def go_version(go_bin: str) -> str:
    res = run_cmd([go_bin, "version"])
    return (res.stdout or res.stderr).strip() or "unknown"


def build_go_list_command(go_bin: str, build_flags: Sequence[str]) -> list[str]:
    # -find skips dependency resolution; file lists are still computed and
    # build constraints are still applied.
    return [go_bin, "list", "-e", "-json", "-find", *build_flags, "./..."]


def run_go_list(
    *,
    go_bin: str,
    module_dir: Path,
    build_flags: Sequence[str] = (),
    timeout_seconds: int = 0,
) -> CmdResult:
    cmd = build_go_list_command(go_bin, build_flags)
    return run_cmd(cmd, cwd=module_dir, timeout_seconds=timeout_seconds, env=dict(GO_LIST_ENV))
