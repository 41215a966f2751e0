"""Service layer components."""

from .archive import ArchiveWriter, RotationManager, RotationResult, prune_session_logs
from .capture import CapturedChunk, SourceOffsetStore, Tailer
from .monitor import HistorianMonitor
from .overview import OverviewGenerator
from .sources import Source, SourceKind, SourceRegistry
from .status import collect_status
from .summarization import (
    CycleStatus,
    IncrementalSummarizer,
    RollingSummary,
    SummaryCursorStore,
    SummaryCycleResult,
    TextGenerator,
)


__all__ = [
    "ArchiveWriter",
    "CapturedChunk",
    "CycleStatus",
    "HistorianMonitor",
    "IncrementalSummarizer",
    "OverviewGenerator",
    "RollingSummary",
    "RotationManager",
    "RotationResult",
    "Source",
    "SourceKind",
    "SourceOffsetStore",
    "SourceRegistry",
    "SummaryCursorStore",
    "SummaryCycleResult",
    "Tailer",
    "TextGenerator",
    "collect_status",
    "prune_session_logs",
]
