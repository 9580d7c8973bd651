from __future__ import annotations

import argparse
from pathlib import Path

from cli.common import parse_github_repo, resolve_batch, resolve_repo_path
from goquarantine.domain import OPERATION_QUARANTINE, Results, past_tense
from goquarantine.errors import ConfigError, QuarantineEngineError
from goquarantine.io import write_json_atomic, write_results, write_text_atomic
from pipeline.config import EngineSettings
from pipeline.engine import process_tests
from pipeline.report import render_markdown, render_text


def _write_outputs(args: argparse.Namespace, results: Results) -> None:
    if args.json_out:
        out = Path(args.json_out).expanduser().resolve()
        write_json_atomic(out, results.to_dict())
        print(f"  JSON     : {out}")

    if args.markdown_out:
        owner, repo = parse_github_repo(args.github_repo)
        out = Path(args.markdown_out).expanduser().resolve()
        write_text_atomic(out, render_markdown(results, owner, repo, args.branch))
        print(f"  Markdown : {out}")


def run_operation(args: argparse.Namespace, settings: EngineSettings, *, operation: str) -> int:
    """Run quarantine or unquarantine from parsed CLI args. Returns the exit code."""
    repo_path = resolve_repo_path(args)
    try:
        batch = resolve_batch(args)
    except ConfigError as e:
        raise SystemExit(f"ERROR: {e}") from e

    options = settings.engine_options(batch.build_flags)

    print(f"\n🚀 Running {operation}")
    print(f"  Repo     : {repo_path}")
    print(f"  Targets  : {sum(len(t.tests) for t in batch.targets)} tests in {len(batch.targets)} packages")
    if options.build_flags:
        print(f"  Flags    : {' '.join(options.build_flags)}")

    try:
        results = process_tests(
            operation,
            repo_path,
            batch.targets,
            reason=batch.reason if operation == OPERATION_QUARANTINE else "",
            options=options,
        )
    except QuarantineEngineError as e:
        raise SystemExit(f"ERROR: {e}") from e

    print()
    print(render_text(results))

    if args.write:
        written = write_results(results)
        print(f"✍️  Wrote {len(written)} files")
    elif results.changed_files():
        print(f"ℹ️  Dry run: {len(results.changed_files())} files would change (pass --write to apply)")

    _write_outputs(args, results)

    failures = results.failures()
    if failures:
        print(f"\n⚠️ Failed to {operation} {len(failures)} tests.")
        return 1
    print(f"\n✅ {past_tense(operation).capitalize()} {len(results.successes())} tests.")
    return 0
