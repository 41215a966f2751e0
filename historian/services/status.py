"""Point-in-time view of the archive and summarization progress."""

from __future__ import annotations

from ..config import Settings
from ..models import StatusResponse
from ..utils.files import file_size
from .overview import OverviewGenerator
from .summarization import RollingSummary, SummaryCursorStore, read_pending


def collect_status(settings: Settings) -> StatusResponse:
    archive_size = file_size(settings.raw_history_path)
    cursor = min(SummaryCursorStore(settings.cursor_path).read(), archive_size)
    batch = read_pending(settings.raw_history_path, cursor, settings.max_transmit_bytes)
    rolling = RollingSummary(settings.resolved_rolling_summary_path)
    overview = OverviewGenerator.from_settings(settings)

    return StatusResponse(
        archive_path=str(settings.raw_history_path),
        archive_size=archive_size,
        max_archive_bytes=settings.max_raw_history_bytes,
        cursor=cursor,
        pending_bytes=archive_size - cursor,
        next_batch_lines=batch.line_count if batch else 0,
        next_batch_bytes=batch.byte_count if batch else 0,
        llm_summarization=settings.llm_summarization,
        rolling_summary_path=str(rolling.path),
        rolling_summary_entries=len(rolling.entries()),
        overview_path=str(overview.output_path),
        overview_age_days=overview.age_days(),
    )


__all__ = ["collect_status"]
