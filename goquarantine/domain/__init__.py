"""goquarantine.domain

Domain objects that form the *contract* between engine stages.

Key idea
--------
Callers hand the engine a list of :class:`QuarantineTarget` objects and get
back a :class:`Results` object. Nothing in between leaks tree-sitter nodes or
``go list`` JSON to the caller.
"""

from __future__ import annotations

from .results import (
    OPERATION_QUARANTINE,
    OPERATION_UNQUARANTINE,
    FileResult,
    PackageResults,
    Results,
    TargetFailure,
    TestResult,
    past_tense,
)
from .target import QuarantineTarget, normalize_targets, split_test_name

__all__ = [
    "OPERATION_QUARANTINE",
    "OPERATION_UNQUARANTINE",
    "FileResult",
    "PackageResults",
    "QuarantineTarget",
    "Results",
    "TargetFailure",
    "TestResult",
    "normalize_targets",
    "past_tense",
    "split_test_name",
]
