from __future__ import annotations

import argparse

from pipeline.config import LOG_LEVELS


def add_output_args(parser: argparse.ArgumentParser) -> None:
    """Register flags that control what happens with the results."""

    parser.add_argument(
        "--write",
        action="store_true",
        help="Write modified files in place. Without it the run is a dry run.",
    )
    parser.add_argument("--json-out", help="Write the full results as JSON to this file")
    parser.add_argument("--markdown-out", help="Write a Markdown summary (PR body) to this file")
    parser.add_argument(
        "--github-repo",
        help="OWNER/REPO used for links in the Markdown summary",
    )
    parser.add_argument("--branch", default="main", help="Branch used for links in the Markdown summary")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=list(LOG_LEVELS),
        help="Logging level (default: GOQUARANTINE_LOG_LEVEL or INFO)",
    )
