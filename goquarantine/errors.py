"""goquarantine.errors

Exceptions that abort a whole engine call.

Per-target problems (test not found, bad signature, missing subtest) are
never raised; they are reported in the results. Only conditions that make
the whole batch meaningless are raised, so the caller can tell "nothing
needed changing" apart from "we could not even look".
"""

from __future__ import annotations


class QuarantineEngineError(RuntimeError):
    """Base class for fatal engine errors."""


class RootDirError(QuarantineEngineError):
    """The root directory does not exist or is not a directory."""


class PackageLoadError(QuarantineEngineError):
    """Go packages could not be resolved (no go binary, go list failed, bad output)."""


class ConfigError(ValueError):
    """Invalid configuration from the environment or a batch file."""
