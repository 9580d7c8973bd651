"""pipeline.report

Human-facing views of engine :class:`~goquarantine.domain.results.Results`.

* :func:`render_text`: terminal summary, one block per package.
* :func:`render_markdown`: PR body with GitHub blob links to every test.
* :func:`commit_info`: commit message plus ``{relative path: new content}``
  for callers that commit through an API instead of a working tree.

None of these touch the filesystem.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from goquarantine.domain.results import (
    OPERATION_QUARANTINE,
    FileResult,
    PackageResults,
    Results,
    TargetFailure,
    past_tense,
)

TOOL_NAME = "goquarantine"
SEPARATOR = "-" * 32


def _file_line(file_result: FileResult, action_past: str) -> str:
    names = file_result.test_names()
    if names:
        return f"{file_result.file}: {', '.join(names)}"
    return f"{file_result.file}: No tests {action_past}"


def _failure_line(failure: TargetFailure) -> str:
    return f"{failure.name}: {failure.reason}"


def _package_text(pkg: PackageResults, action_past: str) -> List[str]:
    lines = [pkg.package, SEPARATOR]
    if pkg.successful_tests_count():
        lines.append("Successes")
        lines.append("")
        lines.extend(_file_line(f, action_past) for f in pkg.files if f.successes)
    else:
        lines.append("")
        lines.append("No successes!")

    failures = pkg.all_failures()
    lines.append("")
    if failures:
        lines.append("Failures")
        lines.append("")
        lines.extend(_failure_line(f) for f in failures)
    else:
        lines.append("No failures!")
    return lines


def render_text(results: Results) -> str:
    action_past = past_tense(results.operation)
    lines: List[str] = []
    for pkg in results:
        lines.extend(_package_text(pkg, action_past))
        lines.append("")
    return "\n".join(lines)


def blob_url(owner: str, repo: str, branch: str, file: str) -> str:
    return f"https://github.com/{owner}/{repo}/blob/{branch}/{file}"


def render_markdown(results: Results, owner: str, repo: str, branch: str) -> str:
    action_past = past_tense(results.operation)
    if results.operation == OPERATION_QUARANTINE:
        out = [f"# Quarantined Flaky Tests using {TOOL_NAME}", ""]
    else:
        out = [f"# Unquarantined Recovered Tests using {TOOL_NAME}", ""]

    for pkg in results:
        failures = pkg.all_failures()
        emoji = "🔴" if failures else "🟢"
        out.append(f"## `{pkg.package}` {emoji}")
        out.append("")

        files = [f for f in pkg.files if f.successes]
        if files:
            out.append(f"### Successfully {action_past} {pkg.successful_tests_count()} tests")
            out.append("")
            out.append("| File | Tests |")
            out.append("|------|-------|")
            for f in files:
                url = blob_url(owner, repo, branch, f.file)
                links = ", ".join(f"[{t.name}]({url}#L{t.original_line})" for t in f.successes)
                out.append(f"| [{f.file}]({url}) | {links} |")
            out.append("")

        if failures:
            out.append(f"### Failed to {results.operation} {len(failures)} tests. Need manual intervention!")
            out.append("")
            out.extend(f"- {_failure_line(f)}" for f in failures)
            out.append("")

    out.append("")
    out.append("---")
    out.append("")
    out.append(f"Created automatically by {TOOL_NAME}.")
    return "\n".join(out)


def commit_info(results: Results) -> Tuple[str, Dict[str, str]]:
    """Commit message and the changed files keyed by repo-relative path."""
    changed = results.changed_files()
    lines = [f"{TOOL_NAME} {results.operation} tests", ""]
    lines.extend(f"{f.file}: {', '.join(f.test_names())}" for f in changed)
    updates = {f.file: f.modified_source for f in changed}
    return "\n".join(lines), updates
