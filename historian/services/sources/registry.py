"""Resolve configured and auto-detected capture sources."""

from __future__ import annotations

import fnmatch
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from ...config import Settings
from ...logging_config import logger


SHELL_HISTORY_CANDIDATES = (
    ".bash_history",
    ".zsh_history",
    ".local/share/fish/fish_history",
    ".history",
    ".sh_history",
)


class SourceKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Source:
    """A file or directory polled for appended content."""

    path: Path
    kind: SourceKind

    @property
    def name(self) -> str:
        return self.path.name


class SourceRegistry:
    """Turns configuration into the concrete list of sources to poll."""

    def __init__(
        self,
        *,
        shell_activity_source: Optional[Path] = None,
        additional_dirs: Sequence[Path] = (),
        patterns: Sequence[str] = ("*.log", "*.jsonl", "*history*"),
        recent_window_minutes: int = 60,
        home: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        exclude: Iterable[Path] = (),
    ) -> None:
        self._shell_activity_source = shell_activity_source
        self._additional_dirs = list(additional_dirs)
        self._patterns = list(patterns)
        self._recent_window_seconds = max(recent_window_minutes, 0) * 60
        self._home = home or Path.home()
        self._environ = os.environ if environ is None else environ
        self._exclude = [Path(os.path.abspath(path)) for path in exclude]

    @classmethod
    def from_settings(cls, settings: Settings) -> "SourceRegistry":
        return cls(
            shell_activity_source=settings.shell_activity_source,
            additional_dirs=settings.additional_log_dirs,
            patterns=settings.directory_patterns,
            recent_window_minutes=settings.recent_window_minutes,
            exclude=_own_outputs(settings),
        )

    def detect_shell_history(self) -> Optional[Path]:
        if self._shell_activity_source is not None:
            return self._shell_activity_source

        for candidate in SHELL_HISTORY_CANDIDATES:
            path = self._home / candidate
            if path.is_file():
                logger.debug("found shell history", extra={"path": str(path)})
                return path

        histfile = (self._environ.get("HISTFILE") or "").strip()
        if histfile and Path(histfile).is_file():
            logger.debug("found shell history from HISTFILE", extra={"path": histfile})
            return Path(histfile)

        logger.debug("could not detect shell history location")
        return None

    def resolve(self) -> List[Source]:
        """Return the sources to poll, deduplicated in configuration order."""

        candidates: List[Path] = []
        shell_history = self.detect_shell_history()
        if shell_history is not None:
            if not shell_history.exists():
                logger.debug("configured shell history does not exist yet", extra={"path": str(shell_history)})
            candidates.append(shell_history)

        for directory in self._additional_dirs:
            if directory.is_dir():
                candidates.append(directory)
            else:
                logger.debug("skipping missing log directory", extra={"path": str(directory)})

        sources: List[Source] = []
        seen = set()
        for path in candidates:
            absolute = Path(os.path.abspath(path))
            if absolute in seen:
                continue
            seen.add(absolute)
            kind = SourceKind.DIRECTORY if absolute.is_dir() else SourceKind.FILE
            sources.append(Source(path=absolute, kind=kind))
        return sources

    def matches(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self._patterns)

    def is_excluded(self, path: Path) -> bool:
        """True for the historian's own archive, logs and summaries."""
        absolute = Path(os.path.abspath(path))
        return any(absolute == excluded or excluded in absolute.parents for excluded in self._exclude)

    def expand(self, source: Source, now: Optional[float] = None) -> List[Path]:
        """Files to tail for *source* this cycle.

        Directory members must match a name pattern and, when a recency
        window is configured, have been modified inside it. Older files are
        skipped even if they were never captured.
        """

        if source.kind is SourceKind.FILE:
            if self.is_excluded(source.path) or not source.path.is_file():
                return []
            return [source.path]
        if not source.path.is_dir():
            return []

        cutoff = None
        if self._recent_window_seconds:
            cutoff = (time.time() if now is None else now) - self._recent_window_seconds

        members: List[Path] = []
        for root, _dirs, files in os.walk(source.path):
            for filename in files:
                if not self.matches(filename):
                    continue
                path = Path(root) / filename
                if self.is_excluded(path):
                    continue
                try:
                    stat = path.stat()
                except OSError:
                    continue
                if cutoff is not None and stat.st_mtime < cutoff:
                    logger.debug("skipping stale file outside recency window", extra={"path": str(path)})
                    continue
                members.append(path)
        return sorted(members)

    def iter_files(self, sources: Iterable[Source], now: Optional[float] = None) -> Iterable[Path]:
        for source in sources:
            yield from self.expand(source, now=now)


def _own_outputs(settings: Settings) -> List[Path]:
    outputs = [
        settings.raw_history_path,
        settings.summary_path,
        settings.resolved_rolling_summary_path,
        settings.state_dir,
    ]
    if settings.session_log_dir is not None:
        outputs.append(settings.session_log_dir)
    if settings.log_file is not None:
        outputs.append(settings.log_file)
    return outputs


__all__ = ["SHELL_HISTORY_CANDIDATES", "Source", "SourceKind", "SourceRegistry"]
