from __future__ import annotations

from typing import Any, Dict, List

from gemini_bridge.schema import to_text


CLOSING_INSTRUCTION = (
    "Return a concise analysis, concrete suggestions, and any important warnings. "
    "Focus on actionable recommendations."
)
UNKNOWN_PATH = "unknown path"


def _as_mapping(payload: Any) -> Dict[str, Any]:
    return payload if isinstance(payload, dict) else {}


def _render_file_block(entry: Any) -> str:
    if not isinstance(entry, dict):
        entry = {}
    path = entry.get("path")
    path_text = UNKNOWN_PATH if path is None else to_text(path)
    snippet = entry.get("snippet")
    snippet_text = "" if snippet is None else to_text(snippet).strip()
    return f"\nFile: {path_text}\n---\n{snippet_text}\n---"


def build_prompt(task: str, payload: Any) -> str:
    """
    Render the task and payload into the prompt sent to the gemini CLI.

    Sections appear in a fixed order: task line, user request, file snippets,
    constraints, closing instruction. Missing or malformed optional fields
    simply drop their section.
    """
    data = _as_mapping(payload)
    nl_request = data.get("natural_language_request")
    selected_files = data.get("selected_files")
    constraints = data.get("constraints")

    lines: List[str] = [f"Task: {task}"]

    if nl_request:
        lines.append("")
        lines.append("User request:")
        lines.append(to_text(nl_request))

    if isinstance(selected_files, list) and selected_files:
        lines.append("")
        lines.append("Relevant files/snippets:")
        for entry in selected_files:
            lines.append(_render_file_block(entry))

    if isinstance(constraints, dict) and constraints:
        lines.append("")
        lines.append("Constraints / preferences:")
        for key, value in constraints.items():
            lines.append(f"- {key}: {to_text(value)}")

    lines.append("")
    lines.append(CLOSING_INSTRUCTION)
    return "\n".join(lines)
