"""pipeline.matcher

Declaration matcher: map requested test names to top-level Go test
functions in one parsed file.

A declaration qualifies as a test entry point when:

* its name starts with ``Test`` or ``Fuzz``
* it has no type parameters and exactly one parameter
* that parameter is ``*testing.T`` (Test) or ``*testing.F`` (Fuzz),
  honoring an aliased ``"testing"`` import

Subtest names (``TestFoo/a``) match the declaration named by their first
component. Resolving ``a`` is the injector's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from tree_sitter import Node

from goquarantine.domain.target import split_test_name

from .gosyntax import (
    GoSource,
    function_name,
    is_pointer_to,
    line_of,
    parameters,
    testing_package_names,
    top_level_functions,
)
from .subtests import find_subtest_callbacks

TEST_PREFIX = "Test"
FUZZ_PREFIX = "Fuzz"

KIND_TEST = "test"
KIND_FUZZ = "fuzz"

REASON_BAD_SIGNATURE = "not a test function signature"
REASON_UNNAMED_PARAM = "test parameter is unnamed"


@dataclass(frozen=True)
class ResolvedDeclaration:
    """A located top-level test or fuzz function. Lives as long as its parse."""

    file: Optional[Path]
    package: str
    function_name: str
    kind: str
    has_subtests: bool
    param_name: str
    line: int
    node: Node
    body: Node
    testing_names: FrozenSet[str]


@dataclass
class MatchResult:
    # Keyed by the requested test name, so TestFoo and TestFoo/a can share a declaration.
    found: Dict[str, ResolvedDeclaration] = field(default_factory=dict)
    rejected: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.found or self.rejected)


def qualify(src: GoSource, decl: Node, testing_names: FrozenSet[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Return (kind, param name, rejection reason) for a function declaration."""
    name = function_name(src, decl) or ""
    if name.startswith(TEST_PREFIX):
        kind, type_name = KIND_TEST, "T"
    elif name.startswith(FUZZ_PREFIX):
        kind, type_name = KIND_FUZZ, "F"
    else:
        return None, None, REASON_BAD_SIGNATURE

    if decl.child_by_field_name("type_parameters") is not None:
        return None, None, REASON_BAD_SIGNATURE

    params = parameters(src, decl.child_by_field_name("parameters"))
    if len(params) != 1:
        return None, None, REASON_BAD_SIGNATURE

    param_name, type_node = params[0]
    if not is_pointer_to(src, type_node, set(testing_names), type_name):
        return None, None, REASON_BAD_SIGNATURE
    if not param_name or param_name == "_":
        return None, None, REASON_UNNAMED_PARAM
    return kind, param_name, None


def match_declarations(
    src: GoSource,
    test_names: Sequence[str],
    *,
    package: str = "",
    file: Optional[Path] = None,
) -> MatchResult:
    result = MatchResult()
    if not test_names:
        return result

    testing_names = frozenset(testing_package_names(src))

    decls: Dict[str, Node] = {}
    for decl in top_level_functions(src):
        name = function_name(src, decl)
        if name and name not in decls:
            decls[name] = decl

    resolved: Dict[str, ResolvedDeclaration] = {}
    for test_name in test_names:
        fn_name, _ = split_test_name(test_name)
        decl = decls.get(fn_name)
        if decl is None:
            result.missing.append(test_name)
            continue

        if fn_name not in resolved:
            kind, param_name, reason = qualify(src, decl, testing_names)
            body = decl.child_by_field_name("body")
            if reason is not None or body is None or kind is None or param_name is None:
                result.rejected[test_name] = reason or REASON_BAD_SIGNATURE
                continue
            resolved[fn_name] = ResolvedDeclaration(
                file=file,
                package=package,
                function_name=fn_name,
                kind=kind,
                has_subtests=bool(find_subtest_callbacks(src, body, set(testing_names))),
                param_name=param_name,
                line=line_of(decl),
                node=decl,
                body=body,
                testing_names=testing_names,
            )
        result.found[test_name] = resolved[fn_name]

    return result


def declaration_lines(src: GoSource) -> Dict[str, int]:
    """Function name -> 1-based line, for reporting positions after a rewrite."""
    out: Dict[str, int] = {}
    for decl in top_level_functions(src):
        name = function_name(src, decl)
        if name and name not in out:
            out[name] = line_of(decl)
    return out

