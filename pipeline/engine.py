"""pipeline.engine

Engine entrypoints: ``quarantine_tests`` and ``unquarantine_tests``.

Flow
----
1. Check the root directory (fatal if missing).
2. Normalize targets (one entry per package, tests deduplicated).
3. Resolve every Go package under the root once, through ``go list``.
4. Process packages in a thread pool. Within a package, files are processed
   one after another and each requested name is claimed by the first file
   that declares it.
5. Collect :class:`~goquarantine.domain.results.PackageResults` in target
   order.

The engine never writes files. See :func:`goquarantine.io.fs.write_results`.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from goquarantine.domain import (
    OPERATION_QUARANTINE,
    OPERATION_UNQUARANTINE,
    FileResult,
    PackageResults,
    QuarantineTarget,
    Results,
    TargetFailure,
    TestResult,
    normalize_targets,
    past_tense,
)
from goquarantine.errors import RootDirError
from tools.golang import PackageInfo, PackagesInfo, load_packages

from .extractor import unquarantine_source
from .gosyntax import parse_go
from .injector import FileTransform, quarantine_source
from .matcher import declaration_lines, match_declarations

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

REASON_PACKAGE_NOT_FOUND = "package not found"
REASON_TEST_NOT_FOUND = "test function not found in package"
REASON_SYNTAX_ERRORS = "file has syntax errors"

PackagesLoader = Callable[[Path, Sequence[str]], PackagesInfo]


@dataclass(frozen=True)
class EngineOptions:
    build_flags: Tuple[str, ...] = ()
    go_bin: str = "go"
    max_workers: int = DEFAULT_MAX_WORKERS
    # 0 disables the timeout.
    go_list_timeout_seconds: int = 0


def _default_loader(options: EngineOptions) -> PackagesLoader:
    def _load(root: Path, build_flags: Sequence[str]) -> PackagesInfo:
        return load_packages(
            root,
            build_flags,
            go_bin=options.go_bin,
            timeout_seconds=options.go_list_timeout_seconds,
        )

    return _load


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return Path(os.path.relpath(path, root)).as_posix()


def process_file(
    operation: str,
    root: Path,
    package: str,
    path: Path,
    test_names: Sequence[str],
    *,
    reason: str = "",
    notes: Optional[List[str]] = None,
) -> Optional[FileResult]:
    """Handle the requested names declared in one file.

    Returns None when the file declares none of them.
    """
    rel = _relative(path, root)
    try:
        data = path.read_bytes()
        original = data.decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable file %s: %s", path, e)
        if notes is not None:
            notes.append(f"{rel} unreadable")
        return None

    src = parse_go(data, path)
    match = match_declarations(src, test_names, package=package, file=path)
    if not match.matched:
        if src.has_errors and notes is not None:
            notes.append(f"{rel} has syntax errors")
        return None

    result = FileResult(
        package=package,
        file=rel,
        file_abs=path,
        original_source=original,
        modified_source=original,
    )
    claimed = [n for n in test_names if n in match.found or n in match.rejected]

    if src.has_errors:
        logger.warning("Not modifying %s: file has syntax errors", path)
        result.failures = [TargetFailure(n, REASON_SYNTAX_ERRORS) for n in claimed]
        return result

    transform: FileTransform
    if operation == OPERATION_QUARANTINE:
        transform = quarantine_source(src, match.found, reason=reason)
    else:
        transform = unquarantine_source(src, match.found)

    if transform.data != data:
        result.modified_source = transform.data.decode("utf-8")
        new_lines = declaration_lines(parse_go(transform.data, path))
    else:
        new_lines = {}

    for name in claimed:
        if name in match.rejected:
            result.failures.append(TargetFailure(name, match.rejected[name]))
            continue
        outcome = transform.outcomes[name]
        if outcome.failure is not None:
            result.failures.append(TargetFailure(name, outcome.failure))
            continue
        decl = outcome.declaration
        result.successes.append(
            TestResult(
                name=name,
                original_line=decl.line,
                modified_line=new_lines.get(decl.function_name, decl.line),
                changed=outcome.changed,
            )
        )
    return result


def process_package(
    operation: str,
    root: Path,
    target: QuarantineTarget,
    info: Optional[PackageInfo],
    *,
    reason: str = "",
) -> PackageResults:
    out = PackageResults(package=target.package)
    if info is None:
        logger.warning("Package %s not found under %s", target.package, root)
        out.failures = [TargetFailure(n, REASON_PACKAGE_NOT_FOUND) for n in target.tests]
        return out

    remaining = list(target.tests)
    notes: List[str] = []
    for file_path in info.test_files():
        if not remaining:
            break
        file_result = process_file(
            operation,
            root,
            target.package,
            Path(file_path),
            remaining,
            reason=reason,
            notes=notes,
        )
        if file_result is None:
            continue
        out.files.append(file_result)
        handled = set(file_result.test_names()) | set(file_result.failed_tests)
        remaining = [n for n in remaining if n not in handled]

    if remaining:
        msg = REASON_TEST_NOT_FOUND
        if notes:
            msg = f"{msg} ({'; '.join(notes)})"
        out.failures = [TargetFailure(n, msg) for n in remaining]

    logger.info(
        "%s %d tests in %s, %d failed",
        past_tense(operation).capitalize(),
        out.successful_tests_count(),
        target.package,
        len(out.all_failures()),
    )
    return out


def process_tests(
    operation: str,
    repo_path: Path,
    targets: Iterable[QuarantineTarget],
    *,
    reason: str = "",
    build_flags: Optional[Sequence[str]] = None,
    options: Optional[EngineOptions] = None,
    packages_loader: Optional[PackagesLoader] = None,
) -> Results:
    """Shared driver behind quarantine and unquarantine."""
    if operation not in (OPERATION_QUARANTINE, OPERATION_UNQUARANTINE):
        raise ValueError(f"unknown operation: {operation!r}")

    options = options or EngineOptions()
    root = Path(repo_path)
    if not root.is_dir():
        raise RootDirError(f"root directory does not exist or is not a directory: {root}")
    root = root.resolve()

    normalized = normalize_targets(targets)
    results = Results(operation=operation, root=root)
    if not normalized:
        return results

    t0 = time.time()
    loader = packages_loader or _default_loader(options)
    flags = list(build_flags) if build_flags is not None else list(options.build_flags)
    packages = loader(root, flags)

    workers = max(1, min(int(options.max_workers or 1), len(normalized)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                process_package,
                operation,
                root,
                target,
                packages.get(target.package),
                reason=reason,
            )
            for target in normalized
        ]
        for future in futures:
            results.add(future.result())

    logger.info(
        "%s %d tests across %d packages in %.2fs (%d failures)",
        past_tense(operation).capitalize(),
        len(results.successes()),
        len(results),
        time.time() - t0,
        len(results.failures()),
    )
    return results


def quarantine_tests(
    repo_path: Path,
    targets: Iterable[QuarantineTarget],
    *,
    reason: str = "",
    build_flags: Optional[Sequence[str]] = None,
    options: Optional[EngineOptions] = None,
    packages_loader: Optional[PackagesLoader] = None,
) -> Results:
    """Skip the targeted tests. ``reason`` (usually a ticket id) goes into the skip message."""
    return process_tests(
        OPERATION_QUARANTINE,
        repo_path,
        targets,
        reason=reason,
        build_flags=build_flags,
        options=options,
        packages_loader=packages_loader,
    )


def unquarantine_tests(
    repo_path: Path,
    targets: Iterable[QuarantineTarget],
    *,
    build_flags: Optional[Sequence[str]] = None,
    options: Optional[EngineOptions] = None,
    packages_loader: Optional[PackagesLoader] = None,
) -> Results:
    return process_tests(
        OPERATION_UNQUARANTINE,
        repo_path,
        targets,
        build_flags=build_flags,
        options=options,
        packages_loader=packages_loader,
    )
