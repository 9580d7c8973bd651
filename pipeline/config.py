"""pipeline.config

Runtime configuration for the CLI and other callers of the engine.

Two sources:

* Environment variables (optionally from a ``.env`` file at the repo root,
  loaded with python-dotenv and never overriding the real environment).
* YAML batch files listing quarantine targets, for runs with many packages.

Example batch file::

    reason: PROJ-123
    build_flags: ["-tags", "integration"]
    targets:
      - package: example.com/project/pkg
        tests: [TestFlaky, TestTable/case_1]
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from dotenv import load_dotenv

from goquarantine.domain.target import QuarantineTarget
from goquarantine.errors import ConfigError

from .engine import DEFAULT_MAX_WORKERS, EngineOptions

ROOT_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = ROOT_DIR / ".env"

ENV_GO_BIN = "GOQUARANTINE_GO_BIN"
ENV_BUILD_FLAGS = "GOQUARANTINE_BUILD_FLAGS"
ENV_MAX_WORKERS = "GOQUARANTINE_MAX_WORKERS"
ENV_GO_LIST_TIMEOUT = "GOQUARANTINE_GO_LIST_TIMEOUT"
ENV_LOG_LEVEL = "GOQUARANTINE_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineSettings:
    go_bin: str = "go"
    build_flags: List[str] = field(default_factory=list)
    max_workers: int = DEFAULT_MAX_WORKERS
    go_list_timeout_seconds: int = 0
    log_level: str = "INFO"

    def engine_options(self, build_flags: Optional[Sequence[str]] = None) -> EngineOptions:
        flags = self.build_flags if build_flags is None else build_flags
        return EngineOptions(
            build_flags=tuple(flags),
            go_bin=self.go_bin,
            max_workers=self.max_workers,
            go_list_timeout_seconds=self.go_list_timeout_seconds,
        )


def _int_env(env: Mapping[str, str], key: str, default: int, *, minimum: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def split_build_flags(raw: Optional[str]) -> List[str]:
    """Split a shell-style flag string (``-tags "a b"``) into argv entries."""
    if not raw:
        return []
    try:
        return shlex.split(raw)
    except ValueError as e:
        raise ConfigError(f"Could not parse build flags {raw!r}: {e}") from e


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[Path] = ENV_PATH) -> EngineSettings:
    """Read settings from *env* (default: ``os.environ`` after loading .env)."""
    if env is None:
        if dotenv_path is not None and Path(dotenv_path).exists():
            load_dotenv(dotenv_path, override=False)
        env = os.environ

    log_level = (env.get(ENV_LOG_LEVEL) or "INFO").strip().upper() or "INFO"
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"{ENV_LOG_LEVEL} must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return EngineSettings(
        go_bin=(env.get(ENV_GO_BIN) or "go").strip() or "go",
        build_flags=split_build_flags(env.get(ENV_BUILD_FLAGS)),
        max_workers=_int_env(env, ENV_MAX_WORKERS, DEFAULT_MAX_WORKERS, minimum=1),
        go_list_timeout_seconds=_int_env(env, ENV_GO_LIST_TIMEOUT, 0, minimum=0),
        log_level=log_level,
    )


# ----------------------------
# Batch files
# ----------------------------


@dataclass
class QuarantineBatch:
    targets: List[QuarantineTarget] = field(default_factory=list)
    reason: str = ""
    build_flags: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "QuarantineBatch":
        raw_targets = raw.get("targets") or []
        if not isinstance(raw_targets, list):
            raise ConfigError("'targets' must be a list")
        try:
            targets = [QuarantineTarget.from_dict(t) for t in raw_targets]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid target entry: {e}") from e

        flags = raw.get("build_flags")
        if isinstance(flags, str):
            build_flags: Optional[List[str]] = split_build_flags(flags)
        elif isinstance(flags, list):
            build_flags = [str(f) for f in flags]
        elif flags is None:
            build_flags = None
        else:
            raise ConfigError("'build_flags' must be a string or a list")

        return cls(targets=targets, reason=str(raw.get("reason") or ""), build_flags=build_flags)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.reason:
            out["reason"] = self.reason
        if self.build_flags is not None:
            out["build_flags"] = list(self.build_flags)
        out["targets"] = [t.to_dict() for t in self.targets]
        return out


def load_batch_yaml(path: Path) -> QuarantineBatch:
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise ConfigError(f"Batch file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Batch YAML must be a mapping at top level: {p}")
    return QuarantineBatch.from_dict(raw)


def dump_batch_yaml(path: Path, batch: QuarantineBatch) -> Path:
    p = Path(path).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(batch.to_dict(), sort_keys=False, default_flow_style=False, width=120)
    p.write_text(text, encoding="utf-8")
    return p
