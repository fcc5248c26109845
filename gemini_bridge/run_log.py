from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


DEFAULT_LOG_DIR = "~/.gemini-cli-bridge-logs"
LOG_FILE_PREFIX = "gemini-cli-"


def iso_timestamp(now: Optional[datetime] = None) -> str:
    ts = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def log_file_name(timestamp: str) -> str:
    safe = timestamp.replace(":", "-").replace(".", "-")
    return f"{LOG_FILE_PREFIX}{safe}.json"


def write_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def ensure_log_directory(log_dir: Path) -> Path:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(f"Warning: Could not create log directory: {exc}", file=sys.stderr)
    return log_dir


def _unique_log_path(log_dir: Path, timestamp: str) -> Path:
    candidate = log_dir / log_file_name(timestamp)
    if not candidate.exists():
        return candidate

    # Two runs inside the same millisecond.
    stem = candidate.stem
    for i in range(1, 1000):
        candidate = log_dir / f"{stem}_{i:03d}.json"
        if not candidate.exists():
            return candidate
    raise OSError(f"Unable to allocate a unique log file name in {log_dir}")


def write_log(
    log_dir: Path,
    argv: List[str],
    payload: Any,
    output: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Optional[Path]:
    """
    Persist one audit record for this invocation.

    Best-effort: failures are reported as a warning on stderr and never raised.
    Returns the written path, or None when nothing was written.
    """
    try:
        timestamp = iso_timestamp(now)
        log_path = _unique_log_path(log_dir, timestamp)
        entry = {
            "timestamp": timestamp,
            "commandLine": list(argv),
            "input": payload,
            "output": output,
        }
        write_json(log_path, entry)
        return log_path
    except (OSError, TypeError, ValueError) as exc:
        print(f"Warning: Could not write log file: {exc}", file=sys.stderr)
        return None
