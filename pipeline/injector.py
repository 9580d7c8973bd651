"""pipeline.injector

Insert skip guards into one parsed Go test file.

Input is the matcher's ``found`` mapping (requested test name -> resolved
declaration). Output is the rewritten bytes plus one :class:`TestOutcome` per
requested name. Nothing here raises for a bad target; failures are carried
in the outcome.

Names that share a declaration are handled together: a whole-function name
gets one ``t.Skip`` at the top of the body, and all subtest names landing on
the same callback share one ``if t.Name() == ... || ...`` guard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from goquarantine.domain.target import split_test_name

from .edits import SourceEdit, apply_edits, insert_first_statement, replace_node
from .gosyntax import GoSource, block_statements
from .guards import (
    is_whole_function_guard,
    parse_subtest_guard,
    render_name_condition,
    render_skip_call,
    render_subtest_guard,
)
from .matcher import ResolvedDeclaration
from .subtests import SubtestCallback, find_subtest_callbacks

logger = logging.getLogger(__name__)

REASON_NO_SUBTEST = "no subtest invocation found"
REASON_UNNAMED_SUBTEST_PARAM = "subtest parameter is unnamed"


@dataclass
class TestOutcome:
    __test__ = False

    name: str
    declaration: ResolvedDeclaration
    changed: bool = False
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class FileTransform:
    data: bytes
    outcomes: Dict[str, TestOutcome] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return any(o.changed for o in self.outcomes.values())


@dataclass
class _DeclarationGroup:
    declaration: ResolvedDeclaration
    whole: List[str] = field(default_factory=list)
    subtests: List[Tuple[str, List[str]]] = field(default_factory=list)


def group_by_declaration(found: Dict[str, ResolvedDeclaration]) -> List[_DeclarationGroup]:
    groups: Dict[str, _DeclarationGroup] = {}
    for name, decl in found.items():
        group = groups.setdefault(decl.function_name, _DeclarationGroup(declaration=decl))
        _, components = split_test_name(name)
        if components:
            group.subtests.append((name, components))
        else:
            group.whole.append(name)
    return list(groups.values())


def _first_statement(body: Node) -> Optional[Node]:
    stmts = block_statements(body)
    return stmts[0] if stmts else None


def _quarantine_subtests(
    src: GoSource,
    group: _DeclarationGroup,
    outcomes: Dict[str, TestOutcome],
    edits: List[SourceEdit],
    reason: str,
) -> None:
    decl = group.declaration
    callbacks = find_subtest_callbacks(src, decl.body, set(decl.testing_names))

    # Callback start byte -> (callback, names guarded there), in source order.
    targets: Dict[int, Tuple[SubtestCallback, List[str]]] = {}
    for name, components in group.subtests:
        qualifying = [cb for cb in callbacks if cb.matches(components)]
        if not qualifying:
            outcomes[name].failure = REASON_NO_SUBTEST
            continue
        if not all(cb.usable for cb in qualifying):
            outcomes[name].failure = REASON_UNNAMED_SUBTEST_PARAM
            continue
        for cb in qualifying:
            targets.setdefault(cb.literal.start_byte, (cb, []))[1].append(name)

    for cb, names in targets.values():
        param = cb.param_name or ""
        guard = parse_subtest_guard(src, _first_statement(cb.body), param)
        if guard is None:
            edits.append(insert_first_statement(src, cb.body, render_subtest_guard(param, names, reason)))
            added = names
        else:
            added = [n for n in names if n not in guard.names]
            if added:
                edits.append(replace_node(guard.condition, render_name_condition(param, guard.names + added)))
        for name in added:
            outcomes[name].changed = True


def quarantine_source(src: GoSource, found: Dict[str, ResolvedDeclaration], *, reason: str = "") -> FileTransform:
    outcomes = {name: TestOutcome(name=name, declaration=decl) for name, decl in found.items()}
    edits: List[SourceEdit] = []

    for group in group_by_declaration(found):
        decl = group.declaration
        if group.whole:
            if is_whole_function_guard(src, _first_statement(decl.body)):
                logger.debug("%s is already quarantined", decl.function_name)
            else:
                edits.append(insert_first_statement(src, decl.body, render_skip_call(decl.param_name, reason)))
                for name in group.whole:
                    outcomes[name].changed = True
        if group.subtests:
            _quarantine_subtests(src, group, outcomes, edits, reason)

    data = apply_edits(src.data, edits) if edits else src.data
    return FileTransform(data=data, outcomes=outcomes)
