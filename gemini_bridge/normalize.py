from __future__ import annotations

from typing import Any, Dict, List

from gemini_bridge.schema import (
    SUMMARY_MAX_CHARS,
    TRUNCATION_MARKER,
    NormalizedOutput,
    NormalizedSection,
    loads_strict,
    to_text,
)


# Earlier keys win; a key counts as present when its value is not None.
ANALYSIS_KEYS = ("analysis", "response")


def parse_tool_output(text: str) -> Dict[str, Any]:
    """
    Parse gemini stdout.

    Text that is not JSON is wrapped under "response". JSON that is not an
    object carries none of the known fields, so it maps to an empty record.
    """
    try:
        obj = loads_strict(text)
    except ValueError:
        return {"response": text}
    if not isinstance(obj, dict):
        return {}
    return obj


def resolve_analysis(raw: Dict[str, Any]) -> str:
    for key in ANALYSIS_KEYS:
        value = raw.get(key)
        if value is not None:
            return to_text(value)
    return ""


def resolve_suggestions(raw: Dict[str, Any]) -> List[str]:
    value = raw.get("suggestions")
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [to_text(item) for item in value]
    return [to_text(value)]


def resolve_notes(raw: Dict[str, Any]) -> str:
    notes = raw.get("notes")
    return notes if isinstance(notes, str) else ""


def summarize(analysis: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    summary = analysis.strip()
    if len(summary) > limit:
        return summary[:limit] + TRUNCATION_MARKER
    return summary


def normalize_output(
    task: str,
    raw: Dict[str, Any],
    summary_max_chars: int = SUMMARY_MAX_CHARS,
) -> NormalizedOutput:
    analysis = resolve_analysis(raw)
    suggestions = resolve_suggestions(raw)
    notes = resolve_notes(raw)
    return NormalizedOutput(
        task=task,
        analysis=analysis,
        suggestions=suggestions,
        notes=notes,
        normalized=NormalizedSection(
            task=task,
            summary=summarize(analysis, summary_max_chars),
            proposed_changes=list(suggestions),
            raw_model_notes=notes,
        ),
    )
