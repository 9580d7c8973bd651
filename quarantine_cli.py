#!/usr/bin/env python3
"""
CLI for quarantining flaky Go tests.

Modes:
  1) quarantine   - insert skip guards for the given tests
  2) unquarantine - remove them again

Usage:
  python quarantine_cli.py
  python quarantine_cli.py --mode quarantine --repo-path ../svc --target example.com/svc/pkg TestFlaky --reason PROJ-1
  python quarantine_cli.py --mode quarantine --repo-path ../svc --batch-file flaky.yaml --write
  python quarantine_cli.py --mode unquarantine --repo-path ../svc --target example.com/svc/pkg TestTable/case_1 --write
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from cli.args.base import add_base_args
from cli.args.output import add_output_args
from cli.dispatch import dispatch
from goquarantine.errors import ConfigError
from pipeline.config import ENV_PATH, load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quarantine or unquarantine flaky Go tests by rewriting test files.")
    add_base_args(parser)
    add_output_args(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    try:
        settings = load_settings(dotenv_path=ENV_PATH)
    except ConfigError as e:
        raise SystemExit(f"ERROR: {e}") from e

    logging.basicConfig(level=args.log_level or settings.log_level, format=LOG_FORMAT)

    raise SystemExit(dispatch(args, settings))


if __name__ == "__main__":
    main()
