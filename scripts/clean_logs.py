from __future__ import annotations

import argparse
from pathlib import Path

from gemini_bridge.__main__ import (
    DEFAULT_CONFIG,
    LOG_DIR_ENV_VAR,
    load_config_with_path,
    merge_config,
    resolve_log_dir,
)
from gemini_bridge.run_log import DEFAULT_LOG_DIR, LOG_FILE_PREFIX

LOG_GLOB = f"{LOG_FILE_PREFIX}*.json"


def default_log_dir() -> Path:
    """Same directory the bridge writes to: env override, then configs/default.yaml, then the default."""
    loaded_cfg, _ = load_config_with_path()
    return resolve_log_dir(merge_config(DEFAULT_CONFIG, loaded_cfg))


def find_stale_logs(log_dir: Path, keep: int) -> list[Path]:
    if not log_dir.is_dir():
        return []
    # Names embed an ISO timestamp, so lexical order is chronological.
    files = sorted(p for p in log_dir.glob(LOG_GLOB) if p.is_file())
    if keep <= 0:
        return files
    return files[:-keep] if len(files) > keep else []


def clean_logs(log_dir: Path, keep: int, dry_run: bool) -> int:
    targets = find_stale_logs(log_dir, keep)
    if dry_run:
        for p in targets:
            print(f"FILE {p}")
        print(f"\n[dry-run] files={len(targets)}")
        return 0

    removed = 0
    for p in targets:
        try:
            p.unlink()
            removed += 1
        except OSError as exc:
            print(f"Warning: could not remove {p}: {exc}")
    print(f"[ok] removed files={removed}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Prune old gemini bridge audit logs, keeping the newest ones."
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help=f"Log directory (default: ${LOG_DIR_ENV_VAR}, then log_dir from configs/default.yaml, then {DEFAULT_LOG_DIR}).",
    )
    parser.add_argument(
        "--keep",
        type=int,
        default=200,
        help="Number of newest log files to keep.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print targets without deleting.",
    )
    args = parser.parse_args()
    log_dir = Path(args.log_dir).expanduser() if args.log_dir else default_log_dir()
    return clean_logs(log_dir=log_dir, keep=int(args.keep), dry_run=bool(args.dry_run))


if __name__ == "__main__":
    raise SystemExit(main())
