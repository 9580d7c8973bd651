from __future__ import annotations

import argparse

from goquarantine.domain import OPERATION_QUARANTINE, OPERATION_UNQUARANTINE


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI flags that select the operation and its targets.

    This includes:
    - mode selection
    - repo selection
    - targets (inline pairs or a YAML batch file)
    - the reason / ticket id and build flags
    """

    parser.add_argument(
        "--mode",
        choices=[OPERATION_QUARANTINE, OPERATION_UNQUARANTINE],
        help="quarantine = insert skip guards, unquarantine = remove them",
    )
    parser.add_argument("--repo-path", help="Local Go repository root (may hold several go.mod files)")

    parser.add_argument(
        "--target",
        nargs=2,
        action="append",
        metavar=("PACKAGE", "TEST"),
        help="Package import path and test name (TestFoo or TestFoo/subtest). Repeatable.",
    )
    parser.add_argument(
        "--batch-file",
        help="YAML file with 'targets' (and optionally 'reason' and 'build_flags').",
    )
    parser.add_argument(
        "--reason",
        help="(quarantine) Tracking id embedded in the skip message, e.g. PROJ-123",
    )
    parser.add_argument(
        "--build-flags",
        default=None,
        help=(
            'Flags passed to "go list" unchanged, e.g. "-tags integration". '
            "Use the = form for a single flag: --build-flags=-race. Overrides GOQUARANTINE_BUILD_FLAGS."
        ),
    )
