"""goquarantine.io.fs

Filesystem writers for rewritten Go sources and run reports.

Every write lands in a sibling temp file first and is moved over the target
with ``os.replace``, so a killed process leaves either the old file or the
new one, never half a test file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List

from goquarantine.domain.results import Results, past_tense

logger = logging.getLogger(__name__)


def _replace_atomically(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = path.stat().st_mode & 0o777 if path.exists() else None

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write *text* byte for byte; line endings are not translated."""
    _replace_atomically(Path(path), text.encode(encoding))


def write_json_atomic(path: Path, data: Any, *, indent: int = 2) -> None:
    text = json.dumps(data, indent=indent, ensure_ascii=False) + "\n"
    _replace_atomically(Path(path), text.encode("utf-8"))


def read_json(path: Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_results(results: Results) -> List[Path]:
    """Write every changed file in *results* to disk.

    Unchanged files are not touched (their mtime survives). Returns the
    written paths.
    """
    written: List[Path] = []
    for file_result in results.changed_files():
        target = Path(file_result.file_abs)
        write_text_atomic(target, file_result.modified_source)
        logger.debug(
            "Wrote %s %s (%s)",
            past_tense(results.operation),
            target,
            ", ".join(file_result.test_names()),
        )
        written.append(target)
    return written
