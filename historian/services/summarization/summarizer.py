"""Incremental summarization of the archive's pending buffer."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from ...config import Settings
from ...llm_client import LLMError
from ...logging_config import logger
from ...utils.files import file_size
from ...utils.timezones import now_in_timezone
from .cursor import SummaryCursorStore
from .generators import TextGenerator, build_text_generator
from .pending import read_pending
from .prompt_builder import build_summary_prompt
from .rolling_summary import RollingSummary
from .state import CycleStatus, PendingBuffer, SummaryCycleResult


class IncrementalSummarizer:
    """Sends new archive content to a text generator and records the result.

    The cursor advances only past bytes that were actually sent and
    summarized. A failed call leaves it untouched so the next cycle retries
    the same range.
    """

    def __init__(
        self,
        *,
        archive_path: Path,
        cursor: SummaryCursorStore,
        rolling_summary: RollingSummary,
        generator: Optional[TextGenerator],
        min_pending_lines: int = 10,
        max_transmit_bytes: int = 50_000,
        max_batches_per_cycle: int = 1,
        clock: Optional[Callable] = None,
    ) -> None:
        self._archive_path = archive_path
        self._cursor = cursor
        self._rolling_summary = rolling_summary
        self._generator = generator
        self._min_pending_lines = min_pending_lines
        self._max_transmit_bytes = max_transmit_bytes
        self._max_batches = max(max_batches_per_cycle, 1)
        self._clock = clock or now_in_timezone

    @classmethod
    def from_settings(
        cls, settings: Settings, generator: Optional[TextGenerator] = None
    ) -> "IncrementalSummarizer":
        if generator is None and settings.llm_summarization:
            generator = build_text_generator(settings)
        return cls(
            archive_path=settings.raw_history_path,
            cursor=SummaryCursorStore(settings.cursor_path),
            rolling_summary=RollingSummary(settings.resolved_rolling_summary_path),
            generator=generator,
            min_pending_lines=settings.min_pending_lines,
            max_transmit_bytes=settings.max_transmit_bytes,
            max_batches_per_cycle=settings.max_batches_per_cycle,
            clock=lambda: now_in_timezone(settings.timezone),
        )

    @property
    def enabled(self) -> bool:
        return self._generator is not None

    def current_cursor(self) -> int:
        """Stored cursor clamped to the archive size (rotation can shrink the archive)."""
        stored = self._cursor.read()
        size = file_size(self._archive_path)
        if stored > size:
            logger.info(
                "summary cursor beyond archive end; clamping",
                extra={"cursor": stored, "archive_size": size},
            )
            return size
        return stored

    def pending(self) -> Optional[PendingBuffer]:
        return read_pending(self._archive_path, self.current_cursor(), self._max_transmit_bytes)

    def _is_significant(self, pending: Optional[PendingBuffer]) -> bool:
        if pending is None:
            return False
        return pending.truncated or pending.line_count >= self._min_pending_lines

    async def run_cycle(self) -> SummaryCycleResult:
        if self._generator is None:
            logger.info("LLM summarization disabled or not configured")
            return SummaryCycleResult(status=CycleStatus.DISABLED)

        self._rolling_summary.ensure_header()
        cursor_before = self.current_cursor()
        result = SummaryCycleResult(
            status=CycleStatus.IDLE, cursor_before=cursor_before, cursor_after=cursor_before
        )

        while result.batches < self._max_batches:
            pending = self.pending()
            if not self._is_significant(pending):
                if result.batches == 0:
                    lines = pending.line_count if pending is not None else 0
                    logger.info("no significant new content to summarize", extra={"lines": lines})
                break

            logger.info(
                "summarizing pending activity",
                extra={
                    "lines": pending.line_count,
                    "start": pending.start,
                    "end": pending.end,
                    "remaining": pending.remaining,
                },
            )
            try:
                summary = await self._generator.generate(build_summary_prompt(pending.text))
            except LLMError as exc:
                logger.error("summarization request failed", extra={"error": str(exc), "start": pending.start})
                result.status = CycleStatus.FAILED
                result.error = str(exc)
                return result

            self._rolling_summary.append_entry(self._clock(), pending.line_count, summary)
            self._cursor.write(pending.end)
            result.status = CycleStatus.SUMMARIZED
            result.batches += 1
            result.lines += pending.line_count
            result.cursor_after = pending.end
            logger.info(
                "summary appended",
                extra={"path": str(self._rolling_summary.path), "cursor": pending.end},
            )

        return result


__all__ = ["IncrementalSummarizer"]
