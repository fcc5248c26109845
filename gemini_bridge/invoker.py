from __future__ import annotations

import shutil
import subprocess
from typing import List, Optional


DEFAULT_EXECUTABLE = "gemini"


class GeminiToolError(Exception):
    """Raised when the gemini CLI cannot produce output; reported in-band, not as a crash."""


class GeminiSpawnError(GeminiToolError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to spawn gemini CLI: {detail}")


class GeminiCliFailed(GeminiToolError):
    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"gemini CLI exited with code {returncode}"
        super().__init__(f"gemini CLI failed: {detail}")


def resolve_executable(name: str, path: Optional[str] = None) -> str:
    # Explicit paths are used as-is; bare names go through PATH lookup.
    if "/" in name or "\\" in name:
        return name
    return shutil.which(name, path=path) or name


def build_command(executable: str, model: str, prompt: str) -> List[str]:
    return [executable, "-p", prompt, "--model", model, "--output-format", "json"]


def call_gemini_cli(model: str, prompt: str, executable: str = DEFAULT_EXECUTABLE) -> str:
    """
    Run the gemini CLI once and return its captured stdout.

    Blocks until the process exits. There is no timeout and no retry.
    """
    cmd = build_command(resolve_executable(executable), model, prompt)
    # ValueError covers arguments the OS cannot take (NUL bytes, lone surrogates).
    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except (OSError, ValueError) as exc:
        raise GeminiSpawnError(str(exc)) from exc

    if result.returncode != 0:
        raise GeminiCliFailed(result.returncode, result.stderr or "")
    return result.stdout or ""
