from __future__ import annotations

from textwrap import dedent

_INSTRUCTIONS = dedent(
    """
    Summarize the following terminal/Claude session activity in 3-7 concise bullet points.
    Focus on: main tasks worked on, key decisions made, problems solved, and current project state.
    Be specific about file paths, commands, and outcomes.
    """
).strip()


def build_summary_prompt(pending_text: str) -> str:
    activity = pending_text.strip() or "(no new activity)"
    return f"{_INSTRUCTIONS}\n\nActivity since last summary:\n{activity}"


__all__ = ["build_summary_prompt"]
