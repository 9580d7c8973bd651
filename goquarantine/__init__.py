"""goquarantine

Core package namespace for the Go test quarantine engine.

Why this exists
---------------
The engine is split across top-level packages the same way the rest of the
repository is: ``tools`` talks to the Go toolchain, ``pipeline`` parses and
rewrites Go source, and ``cli`` is the command-line entrypoint.

This package owns what those layers exchange:

* domain types (targets and results), the data contract between stages
* IO helpers for callers that want to persist results

It must not import from ``tools`` or ``pipeline``.
"""

from __future__ import annotations
