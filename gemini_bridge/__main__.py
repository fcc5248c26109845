from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple

import yaml

from gemini_bridge.invoker import DEFAULT_EXECUTABLE, GeminiToolError, call_gemini_cli
from gemini_bridge.normalize import normalize_output, parse_tool_output
from gemini_bridge.prompt import build_prompt
from gemini_bridge.run_log import DEFAULT_LOG_DIR, ensure_log_directory, write_log
from gemini_bridge.schema import DEFAULT_MODEL, SUMMARY_MAX_CHARS, BridgeArgs, loads_strict, make_tool_error


DEFAULT_CONFIG: Dict[str, Any] = {
    "model": DEFAULT_MODEL,
    "gemini_bin": DEFAULT_EXECUTABLE,
    "log_dir": DEFAULT_LOG_DIR,
    "log_enabled": True,
    "summary_max_chars": SUMMARY_MAX_CHARS,
}

LOG_DIR_ENV_VAR = "GEMINI_BRIDGE_LOG_DIR"


class InputError(ValueError):
    """Raised for argument or stdin validation failures (exit status 1)."""


class _BridgeArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise InputError(message)


def discover_config_path(repo_root: Optional[Path] = None) -> Optional[Path]:
    root = (repo_root or Path(__file__).resolve().parent.parent).resolve()
    candidate = root / "configs" / "default.yaml"
    if candidate.exists():
        return candidate
    return None


def load_config_with_path(repo_root: Optional[Path] = None) -> Tuple[Dict[str, Any], Optional[Path]]:
    cfg_path = discover_config_path(repo_root=repo_root)
    if cfg_path is None:
        return {}, None
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path}: configs/default.yaml must contain a mapping/object")
    return data, cfg_path


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    out.update(override)
    return out


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        out = int(value)
    except (TypeError, ValueError):
        return default
    return out if out > 0 else default


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def resolve_log_dir(cfg: Dict[str, Any], env_log_dir: Optional[str] = None) -> Path:
    env_value = env_log_dir if env_log_dir is not None else os.environ.get(LOG_DIR_ENV_VAR)
    raw = (env_value or "").strip() or str(cfg.get("log_dir") or DEFAULT_LOG_DIR)
    return Path(raw).expanduser()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _BridgeArgumentParser(
        prog="gemini-cli",
        description="Send a JSON payload from stdin to the gemini CLI and print normalized JSON.",
        allow_abbrev=False,
    )
    parser.add_argument("--task", type=str, default=None, help="Task name, e.g. architecture_review.")
    parser.add_argument("--stdin", action="store_true", help="Read the JSON payload from stdin (required).")
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help=f"Gemini model name (default: {DEFAULT_MODEL}, or `model` from configs/default.yaml).",
    )
    return parser


def parse_bridge_args(argv: List[str], default_model: str = DEFAULT_MODEL) -> BridgeArgs:
    # Unknown tokens are ignored.
    args, _unknown = build_arg_parser().parse_known_args(argv)
    if not args.task:
        raise InputError("--task is required.")
    if not args.stdin:
        raise InputError("this wrapper currently only supports --stdin mode.")
    return BridgeArgs(task=args.task, stdin=True, model=args.model or default_model)


def _read_stdin_text() -> str:
    # Undecodable bytes become U+FFFD rather than aborting the read.
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin.read()
    return buffer.read().decode("utf-8", errors="replace")


def read_payload(stream: Optional[TextIO] = None) -> Any:
    data = stream.read() if stream is not None else _read_stdin_text()
    if not data.strip():
        raise InputError("no stdin data received.")
    try:
        return loads_strict(data)
    except ValueError as exc:
        raise InputError(f"invalid JSON on stdin: {exc}") from exc


def print_output(text: str) -> None:
    """Print JSON output safely on Windows consoles with limited code pages."""
    try:
        print(text)
    except UnicodeEncodeError:
        sys.stdout.buffer.write((text + "\n").encode("utf-8", errors="replace"))
        sys.stdout.flush()


def run_bridge(
    cfg: Dict[str, Any],
    argv: List[str],
    args: BridgeArgs,
    payload: Any,
) -> int:
    prompt = build_prompt(args.task, payload)
    try:
        raw_out = call_gemini_cli(
            args.model,
            prompt,
            executable=str(cfg.get("gemini_bin") or DEFAULT_EXECUTABLE),
        )
    except GeminiToolError as exc:
        print_output(json.dumps(make_tool_error(str(exc)), ensure_ascii=False))
        return 0

    parsed = parse_tool_output(raw_out)
    normalized = normalize_output(
        args.task,
        parsed,
        summary_max_chars=_as_int(cfg.get("summary_max_chars"), SUMMARY_MAX_CHARS),
    ).to_dict()

    if _as_bool(cfg.get("log_enabled"), True):
        log_dir = ensure_log_directory(resolve_log_dir(cfg))
        write_log(log_dir, argv, payload, normalized)

    print_output(json.dumps(normalized, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    try:
        loaded_cfg, _ = load_config_with_path()
        cfg = merge_config(DEFAULT_CONFIG, loaded_cfg)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        cfg_path = discover_config_path()
        payload: Dict[str, Any] = {
            "ok": False,
            "error_code": "CONFIG_ERROR",
            "error_message": str(exc),
            "resolved_config_path": str(cfg_path) if cfg_path else None,
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return 1

    try:
        args = parse_bridge_args(argv, default_model=str(cfg.get("model") or DEFAULT_MODEL))
        request_payload = read_payload(stdin)
    except InputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return run_bridge(cfg, argv, args, request_payload)


if __name__ == "__main__":
    raise SystemExit(main())
