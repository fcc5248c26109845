from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


MODEL_LABEL = "gemini"
DEFAULT_MODEL = "gemini-2.5-flash"
SUMMARY_MAX_CHARS = 2000
TRUNCATION_MARKER = " ...[truncated]"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads_strict(text: str) -> Any:
    """json.loads without the NaN / Infinity extensions; raises ValueError on any bad input."""
    return json.loads(text, parse_constant=_reject_constant)


def to_text(value: Any) -> str:
    """Stringify a JSON value the way it should read inside a prompt or summary."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


@dataclass(frozen=True)
class BridgeArgs:
    task: str
    stdin: bool
    model: str


@dataclass
class NormalizedSection:
    task: str
    summary: str
    proposed_changes: List[str]
    raw_model_notes: str
    warnings: List[str] = field(default_factory=list)
    chosen_model: str = MODEL_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chosen_model": self.chosen_model,
            "task": self.task,
            "summary": self.summary,
            "proposed_changes": list(self.proposed_changes),
            "warnings": list(self.warnings),
            "raw_model_notes": self.raw_model_notes,
        }


@dataclass
class NormalizedOutput:
    task: str
    analysis: str
    suggestions: List[str]
    notes: str
    normalized: NormalizedSection
    model: str = MODEL_LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "task": self.task,
            "analysis": self.analysis,
            "suggestions": list(self.suggestions),
            "notes": self.notes,
            "normalized": self.normalized.to_dict(),
        }


def make_tool_error(message: str) -> Dict[str, str]:
    return {
        "model": MODEL_LABEL,
        "task": "error",
        "error": message,
    }
