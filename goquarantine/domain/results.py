"""goquarantine.domain.results

Per-file and per-package outcomes of a quarantine or unquarantine run.

Layout
------
``Results`` maps package import path -> :class:`PackageResults`.
Each ``PackageResults`` holds the :class:`FileResult` objects for the test
files where at least one requested test was found, plus package-level
failures for names no file could account for (package not found, test not
found).

Invariant: a requested test name shows up exactly once across a package,
either as a success or as a failure of one file, or as a package failure.

The engine never writes files. ``FileResult.modified_source`` is the full new
file content and it is up to the caller to persist it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

OPERATION_QUARANTINE = "quarantine"
OPERATION_UNQUARANTINE = "unquarantine"


def past_tense(operation: str) -> str:
    if operation in (OPERATION_QUARANTINE, OPERATION_UNQUARANTINE):
        return f"{operation}d"
    return operation


@dataclass(frozen=True)
class TestResult:
    """A test that was handled successfully in a file."""

    __test__ = False  # keep pytest from collecting this class

    name: str
    original_line: int
    modified_line: int
    # False when the file already had the requested state (idempotent no-op).
    changed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "original_line": self.original_line,
            "modified_line": self.modified_line,
            "changed": self.changed,
        }


@dataclass(frozen=True)
class TargetFailure:
    name: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "reason": self.reason}


@dataclass
class FileResult:
    """Outcome for a single Go test file."""

    package: str
    file: str
    file_abs: Path
    original_source: str
    modified_source: str
    successes: List[TestResult] = field(default_factory=list)
    failures: List[TargetFailure] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.modified_source != self.original_source

    def test_names(self) -> List[str]:
        return [t.name for t in self.successes]

    @property
    def failed_tests(self) -> List[str]:
        return [f.name for f in self.failures]

    def to_dict(self, *, include_source: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "package": self.package,
            "file": self.file,
            "file_abs": str(self.file_abs),
            "changed": self.changed,
            "successes": [t.to_dict() for t in self.successes],
            "failures": [f.to_dict() for f in self.failures],
        }
        if include_source:
            out["modified_source"] = self.modified_source
        return out


@dataclass
class PackageResults:
    package: str
    files: List[FileResult] = field(default_factory=list)
    failures: List[TargetFailure] = field(default_factory=list)

    def successful_tests_count(self) -> int:
        return sum(len(f.successes) for f in self.files)

    def all_failures(self) -> List[TargetFailure]:
        out: List[TargetFailure] = []
        for f in self.files:
            out.extend(f.failures)
        out.extend(self.failures)
        return out

    def to_dict(self, *, include_source: bool = False) -> Dict[str, Any]:
        return {
            "package": self.package,
            "files": [f.to_dict(include_source=include_source) for f in self.files],
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class Results:
    """All package results of one engine call, in target order."""

    operation: str
    root: Optional[Path] = None
    packages: Dict[str, PackageResults] = field(default_factory=dict)

    def __iter__(self) -> Iterator[PackageResults]:
        return iter(self.packages.values())

    def __len__(self) -> int:
        return len(self.packages)

    def __getitem__(self, package: str) -> PackageResults:
        return self.packages[package]

    def add(self, result: PackageResults) -> None:
        self.packages[result.package] = result

    def files(self) -> List[FileResult]:
        return [f for pkg in self for f in pkg.files]

    def changed_files(self) -> List[FileResult]:
        return [f for f in self.files() if f.changed]

    def successes(self) -> List[Tuple[str, str]]:
        """(package, test name) for every successfully handled test."""
        return [(f.package, t.name) for f in self.files() for t in f.successes]

    def failures(self) -> List[Tuple[str, TargetFailure]]:
        return [(pkg.package, failure) for pkg in self for failure in pkg.all_failures()]

    def to_dict(self, *, include_source: bool = False) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "root": str(self.root) if self.root is not None else None,
            "packages": [pkg.to_dict(include_source=include_source) for pkg in self],
        }
