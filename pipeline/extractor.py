"""pipeline.extractor

Remove skip guards from one parsed Go test file. Inverse of
:mod:`pipeline.injector`.

A target with no guard left to remove is a success with ``changed=False``:
unquarantining twice must not fail the second time.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .edits import SourceEdit, apply_edits, remove_statement, replace_node
from .gosyntax import GoSource, block_statements, parse_go
from .guards import is_legacy_env_guard, is_skip_guard, parse_subtest_guard, render_name_condition
from .imports import remove_import_if_unused
from .injector import FileTransform, TestOutcome, group_by_declaration
from .matcher import ResolvedDeclaration
from .subtests import find_subtest_callbacks

logger = logging.getLogger(__name__)

OS_IMPORT_PATH = "os"


def unquarantine_source(src: GoSource, found: Dict[str, ResolvedDeclaration]) -> FileTransform:
    outcomes = {name: TestOutcome(name=name, declaration=decl) for name, decl in found.items()}
    edits: List[SourceEdit] = []
    removed_legacy = False

    for group in group_by_declaration(found):
        decl = group.declaration
        if group.whole:
            stmts = block_statements(decl.body)
            first = stmts[0] if stmts else None
            legacy = is_legacy_env_guard(src, first)
            if first is not None and (legacy or is_skip_guard(src, first)):
                edits.append(remove_statement(src, decl.body, first))
                removed_legacy = removed_legacy or legacy
                for name in group.whole:
                    outcomes[name].changed = True
            else:
                logger.debug("%s has no quarantine guard", decl.function_name)

        if not group.subtests:
            continue

        requested = [name for name, _ in group.subtests]
        for cb in find_subtest_callbacks(src, decl.body, set(decl.testing_names)):
            if not cb.usable:
                continue
            stmts = block_statements(cb.body)
            guard = parse_subtest_guard(src, stmts[0] if stmts else None, cb.param_name or "")
            if guard is None:
                continue
            removed = [n for n in guard.names if n in requested]
            if not removed:
                continue
            remaining = [n for n in guard.names if n not in requested]
            if remaining:
                edits.append(replace_node(guard.condition, render_name_condition(cb.param_name or "", remaining)))
            else:
                edits.append(remove_statement(src, cb.body, guard.node))
            for name in removed:
                outcomes[name].changed = True

    data = apply_edits(src.data, edits) if edits else src.data

    if removed_legacy:
        # The legacy guard was often the only user of "os".
        rewritten = parse_go(data, src.path)
        edit = remove_import_if_unused(rewritten, OS_IMPORT_PATH)
        if edit is not None:
            data = apply_edits(data, [edit])

    return FileTransform(data=data, outcomes=outcomes)
