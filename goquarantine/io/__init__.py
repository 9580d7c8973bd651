"""goquarantine.io

Filesystem helpers for callers of the engine.

The engine itself never writes to disk. Callers that want to persist the
regenerated sources (the CLI with ``--write``) go through this package so the
writes are atomic and consistent.
"""

from __future__ import annotations

from .fs import read_json, write_json_atomic, write_results, write_text_atomic

__all__ = [
    "read_json",
    "write_json_atomic",
    "write_results",
    "write_text_atomic",
]
