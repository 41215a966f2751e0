from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class PendingBuffer:
    """Not-yet-summarized archive bytes ``[start, end)``, capped for transmission."""

    start: int
    end: int
    archive_size: int
    text: str
    truncated: bool

    @property
    def byte_count(self) -> int:
        return self.end - self.start

    @property
    def line_count(self) -> int:
        return len(self.text.splitlines())

    @property
    def remaining(self) -> int:
        return self.archive_size - self.end


class CycleStatus(str, Enum):
    DISABLED = "disabled"
    IDLE = "idle"
    SUMMARIZED = "summarized"
    FAILED = "failed"


@dataclass
class SummaryCycleResult:
    """Outcome of one summarization cycle."""

    status: CycleStatus
    cursor_before: int = 0
    cursor_after: int = 0
    batches: int = 0
    lines: int = 0
    error: Optional[str] = None


__all__ = ["CycleStatus", "PendingBuffer", "SummaryCycleResult"]
