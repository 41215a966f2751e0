"""Append-only document of incremental summaries."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import List

from ...logging_config import logger
from ...utils.timezones import format_timestamp


ROLLING_SUMMARY_HEADER = """# Terminal Session History - Rolling Summary

This file contains incremental AI-generated summaries of your terminal and Claude Code sessions.
Each section represents a summary of activity since the previous summary.

Use this for: context recovery, documentation, feeding to LLMs, interview prep notes.

"""

# An entry starts with a separator, its timestamp line and its line-count line.
_ENTRY_SEPARATOR = re.compile(
    r"^---\n(?=### \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\n_Summarized \d+ lines of new activity_\n)",
    re.MULTILINE,
)


def format_entry(moment: datetime, line_count: int, summary_text: str) -> str:
    return (
        "\n---\n"
        f"### {format_timestamp(moment)}\n"
        f"_Summarized {line_count} lines of new activity_\n"
        "\n"
        f"{summary_text.strip()}\n"
    )


class RollingSummary:
    """Grows forever; entries are only ever appended."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def ensure_header(self) -> None:
        if self._path.exists():
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(ROLLING_SUMMARY_HEADER, encoding="utf-8")
        logger.info("created rolling summary file", extra={"path": str(self._path)})

    def append_entry(self, moment: datetime, line_count: int, summary_text: str) -> None:
        self.ensure_header()
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(format_entry(moment, line_count, summary_text))

    def entries(self) -> List[str]:
        """Entry blocks in file order, each starting with its ``### <timestamp>`` line."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        parts = _ENTRY_SEPARATOR.split(text)
        return [part.strip() for part in parts[1:] if part.strip()]

    def tail(self, count: int) -> List[str]:
        if count <= 0:
            return []
        return self.entries()[-count:]


__all__ = ["ROLLING_SUMMARY_HEADER", "RollingSummary", "format_entry"]
