"""tools/core_cmd.py

Subprocess plumbing for the toolchain adapters under ``tools/``.

Nothing here knows about Go. Commands are argv lists (never ``shell=True``),
output is captured as text, and a non-zero exit is data for the caller
rather than an exception.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def stderr_tail(self, max_lines: int = 20) -> str:
        """Last *max_lines* of stderr, for error messages."""
        lines = self.stderr.strip().splitlines()
        if len(lines) > max_lines:
            lines = ["..."] + lines[-max_lines:]
        return "\n".join(lines)


def which_or_raise(bin_name: str, fallbacks: Optional[Iterable[str]] = None) -> str:
    """Absolute path of *bin_name* (a PATH lookup or an explicit path).

    *fallbacks* are checked in order when PATH has nothing.
    """
    found = shutil.which(bin_name)
    if found:
        return found

    tried = list(fallbacks or [])
    for candidate in tried:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            logger.debug("%s not on PATH, using %s", bin_name, candidate)
            return candidate

    hint = f" (also tried {', '.join(tried)})" if tried else ""
    raise FileNotFoundError(f"executable {bin_name!r} not found on PATH{hint}")


def run_cmd(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    timeout_seconds: int = 0,
    env: Optional[Dict[str, str]] = None,
) -> CmdResult:
    """Run *cmd* and capture its output.

    *env* entries are layered over the current environment. A timeout of 0
    means none. ``subprocess.TimeoutExpired`` and ``OSError`` propagate.
    """
    argv = [str(c) for c in cmd]
    command_str = shlex.join(argv)
    logger.debug("Running %s (cwd=%s)", command_str, cwd or os.getcwd())

    started = time.monotonic()
    proc = subprocess.run(
        argv,
        cwd=str(cwd) if cwd else None,
        text=True,
        capture_output=True,
        timeout=timeout_seconds if timeout_seconds > 0 else None,
        env={**os.environ, **env} if env else None,
    )
    elapsed = time.monotonic() - started

    # go prints warnings such as "matched no packages" to stderr on success too.
    if proc.stderr:
        logger.debug("%s stderr:\n%s", argv[0], proc.stderr.rstrip())

    return CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=elapsed,
        command_str=command_str,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
