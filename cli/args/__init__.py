"""CLI argument builder modules.

The top-level :mod:`quarantine_cli` is intentionally kept thin. Groups of
flags are registered by small "arg builder" functions housed here:

- :func:`cli.args.base.add_base_args`
- :func:`cli.args.output.add_output_args`
"""

from __future__ import annotations

__all__ = [
    "base",
    "output",
]
