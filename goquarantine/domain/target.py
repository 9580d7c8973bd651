"""goquarantine.domain.target

Quarantine targets: which tests, in which Go package.

A target names a package by its full import path and lists test names inside
it. A test name is either a bare function name (``TestFoo``) or a
hierarchical subtest name (``TestFoo/case_1``), exactly as ``go test``
reports it.

The same target type is used for quarantine and unquarantine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple


def _as_list_of_str(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, (list, tuple, set)):
        return [str(x).strip() for x in v if x is not None and str(x).strip()]
    return [str(v).strip()] if str(v).strip() else []


@dataclass(frozen=True)
class QuarantineTarget:
    """A Go package import path and the tests to target inside it."""

    package: str
    tests: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "QuarantineTarget":
        if not isinstance(d, Mapping):
            raise TypeError(f"QuarantineTarget.from_dict expected mapping, got {type(d)!r}")
        package = str(d.get("package") or "").strip()
        if not package:
            raise ValueError("Quarantine target is missing 'package'")
        return cls(package=package, tests=_as_list_of_str(d.get("tests")))

    def to_dict(self) -> Dict[str, Any]:
        return {"package": self.package, "tests": list(self.tests)}


def split_test_name(name: str) -> Tuple[str, List[str]]:
    """Split ``TestFoo/a/b`` into ``("TestFoo", ["a", "b"])``."""
    parts = str(name).split("/")
    return parts[0], parts[1:]


def normalize_targets(targets: Iterable[QuarantineTarget]) -> List[QuarantineTarget]:
    """Merge targets that share a package and drop duplicate test names.

    Package order and test order are both first-seen. Running this on an
    already normalized list returns an equal list.
    """
    seen: Dict[str, List[str]] = {}
    for target in targets:
        tests = seen.setdefault(target.package, [])
        for test in target.tests:
            if test not in tests:
                tests.append(test)

    return [QuarantineTarget(package=pkg, tests=tests) for pkg, tests in seen.items()]
