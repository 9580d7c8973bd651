"""cli.common

Small shared helpers for CLI command modules: turning flags, batch files and
interactive answers into engine inputs.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from cli.ui import prompt_list, prompt_text
from goquarantine.domain import QuarantineTarget
from pipeline.config import QuarantineBatch, load_batch_yaml, split_build_flags


def resolve_repo_path(args: argparse.Namespace) -> Path:
    raw = args.repo_path
    while not raw:
        raw = prompt_text("Enter local Go repo path")
        if not raw:
            print("Empty path. Try again.")
    return Path(raw).expanduser().resolve()


def targets_from_flags(pairs: Optional[List[List[str]]]) -> List[QuarantineTarget]:
    """``--target PKG TEST`` pairs -> targets (normalization happens in the engine)."""
    return [QuarantineTarget(package=pkg, tests=[test]) for pkg, test in (pairs or [])]


def resolve_batch(args: argparse.Namespace) -> QuarantineBatch:
    """Merge --batch-file, --target, --reason and --build-flags into one batch.

    Flags win over values from the batch file. With nothing given, prompt.
    """
    batch = load_batch_yaml(Path(args.batch_file)) if args.batch_file else QuarantineBatch()
    batch.targets.extend(targets_from_flags(args.target))

    if not batch.targets:
        package = ""
        while not package:
            package = prompt_text("Go package import path")
        batch.targets.append(QuarantineTarget(package=package, tests=prompt_list("Test names")))

    if args.reason:
        batch.reason = str(args.reason)
    if args.build_flags is not None:
        batch.build_flags = split_build_flags(args.build_flags)
    return batch


def parse_github_repo(raw: Optional[str]) -> Tuple[str, str]:
    """``owner/repo`` -> (owner, repo)."""
    owner, _, repo = (raw or "").strip().partition("/")
    if not owner or not repo or "/" in repo:
        raise SystemExit(f"--github-repo must look like OWNER/REPO, got {raw!r}")
    return owner, repo
