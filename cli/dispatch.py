from __future__ import annotations

import argparse

from cli.commands.quarantine import run_operation
from cli.ui import choose_from_menu
from goquarantine.domain import OPERATION_QUARANTINE, OPERATION_UNQUARANTINE
from pipeline.config import EngineSettings


def dispatch(args: argparse.Namespace, settings: EngineSettings) -> int:
    # mode selection
    mode = args.mode
    if mode is None:
        mode = choose_from_menu(
            "Choose an action:",
            {
                OPERATION_QUARANTINE: "Quarantine flaky tests (insert skip guards)",
                OPERATION_UNQUARANTINE: "Unquarantine recovered tests (remove skip guards)",
            },
        )

    return int(run_operation(args, settings, operation=mode))
