"""Whole-archive static overview, replaced in place on each regeneration."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ...config import Settings
from ...logging_config import logger
from ...utils.files import atomic_write_text
from ...utils.timezones import format_timestamp, now_in_timezone
from .extractors import COMMAND_CATEGORIES, ArchiveDigest, digest_lines


OVERVIEW_HEADER = """# Terminal Session Context Summary

This document contains summarized context from your terminal session history.
Useful for recovering context, documentation, and feeding to LLMs.

---
"""

MAX_LISTED_DIRECTORIES = 20
MAX_LISTED_FILES = 50
RECENT_ENTRIES = 50


def human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "K", "M", "G", "T"):
        if value < 1024 or unit == "T":
            return f"{int(value)}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{size}B"  # pragma: no cover - loop always returns


class OverviewGenerator:
    """Renders the static overview document from the raw archive."""

    def __init__(
        self,
        *,
        archive_path: Path,
        output_path: Path,
        config_path: Optional[Path] = None,
        max_lines: int = 500,
        include_directories: bool = True,
        include_files: bool = True,
        include_commands: bool = True,
        llm_enabled: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._archive_path = archive_path
        self._output_path = output_path
        self._config_path = config_path
        self._max_lines = max_lines
        self._include_directories = include_directories
        self._include_files = include_files
        self._include_commands = include_commands
        self._llm_enabled = llm_enabled
        self._clock = clock or now_in_timezone

    @classmethod
    def from_settings(cls, settings: Settings, output_path: Optional[Path] = None) -> "OverviewGenerator":
        return cls(
            archive_path=settings.raw_history_path,
            output_path=output_path or settings.summary_path,
            config_path=settings.config_path,
            max_lines=settings.max_summary_lines,
            include_directories=settings.include_directories,
            include_files=settings.include_files,
            include_commands=settings.include_commands,
            llm_enabled=settings.llm_summarization,
            clock=lambda: now_in_timezone(settings.timezone),
        )

    @property
    def output_path(self) -> Path:
        return self._output_path

    def age_days(self, now: Optional[float] = None) -> Optional[int]:
        """Whole days since the overview was last written, ``None`` if it does not exist."""
        try:
            modified = self._output_path.stat().st_mtime
        except FileNotFoundError:
            return None
        current = time.time() if now is None else now
        return int((current - modified) // 86400)

    def is_stale(self, interval_days: int, now: Optional[float] = None) -> bool:
        age = self.age_days(now)
        return age is None or age >= interval_days

    def render(self) -> str:
        digest: Optional[ArchiveDigest] = None
        size = 0
        try:
            with self._archive_path.open("r", encoding="utf-8", errors="replace") as handle:
                digest = digest_lines(handle)
            size = self._archive_path.stat().st_size
        except FileNotFoundError:
            digest = None

        lines: List[str] = [OVERVIEW_HEADER]
        if digest is None:
            lines.append("_No history available yet. Run the monitor to start collecting._\n")
        else:
            if self._include_directories:
                lines.append(self._directory_section(digest))
            if self._include_files:
                lines.append(self._file_section(digest))
            if self._include_commands:
                lines.append(self._command_section(digest))
            if self._llm_enabled:
                lines.append("## LLM-Generated Summary\n\n_See rolling summary file for incremental summaries_\n")
            lines.append(self._recent_section(digest))
        lines.append(self._footer(digest, size))

        document = "\n".join(lines)
        return self._truncate(document)

    def write(self) -> Path:
        document = self.render()
        atomic_write_text(self._output_path, document)
        logger.info(
            "overview written",
            extra={"path": str(self._output_path), "lines": document.count("\n")},
        )
        return self._output_path

    def _directory_section(self, digest: ArchiveDigest) -> str:
        out = ["## Working Directories", ""]
        directories = digest.sorted_directories()
        if directories:
            out.extend(f"- `{directory}`" for directory in directories[:MAX_LISTED_DIRECTORIES])
            if len(directories) > MAX_LISTED_DIRECTORIES:
                out.append(f"- _...and {len(directories) - MAX_LISTED_DIRECTORIES} more_")
        else:
            out.append("_No directories detected_")
        return "\n".join(out) + "\n"

    def _file_section(self, digest: ArchiveDigest) -> str:
        out = ["## Files Accessed", ""]
        files = digest.sorted_files()
        if files:
            out.append("```")
            out.extend(files[:MAX_LISTED_FILES])
            if len(files) > MAX_LISTED_FILES:
                out.append(f"... and {len(files) - MAX_LISTED_FILES} more files")
            out.append("```")
        else:
            out.append("_No file access detected_")
        return "\n".join(out) + "\n"

    def _command_section(self, digest: ArchiveDigest) -> str:
        out = ["## Command Patterns", ""]
        for name, _pattern in COMMAND_CATEGORIES:
            count = digest.command_counts.get(name, 0)
            if count:
                out.append(f"- **{name}**: {count} occurrences")
        if len(out) == 2:
            out.append("_No common command patterns detected_")
        return "\n".join(out) + "\n"

    def _recent_section(self, digest: ArchiveDigest) -> str:
        out = [
            "## Recent Activity",
            "",
            f"_Total history: {digest.line_count} lines_",
            "",
            f"### Last {RECENT_ENTRIES} Entries",
            "",
            "```",
        ]
        out.extend(digest.recent_entries(RECENT_ENTRIES))
        out.append("```")
        return "\n".join(out) + "\n"

    def _footer(self, digest: Optional[ArchiveDigest], size: int) -> str:
        out = ["---", "", f"_Generated: {format_timestamp(self._clock())}_  "]
        if digest is not None:
            out.append(f"_Source: {digest.line_count} lines ({human_size(size)})_  ")
        if self._config_path is not None:
            out.append(f"_Config: {self._config_path}_")
        return "\n".join(out) + "\n"

    def _truncate(self, document: str) -> str:
        lines = document.splitlines()
        if len(lines) <= self._max_lines:
            return document
        kept = "\n".join(lines[: self._max_lines])
        return f"{kept}\n\n_[Truncated to {self._max_lines} lines]_\n"


__all__ = ["OVERVIEW_HEADER", "OverviewGenerator", "human_size"]
