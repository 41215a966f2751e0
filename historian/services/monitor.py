"""Cooperative polling loop: capture, rotate, summarize, sleep."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import List, Optional

from ..config import NoSourcesError, Settings
from ..logging_config import logger
from ..utils.timezones import now_in_timezone
from .archive import ArchiveWriter, RotationManager, RotationResult, prune_session_logs
from .capture import CapturedChunk, SourceOffsetStore, Tailer
from .overview import OverviewGenerator
from .sources import Source, SourceRegistry
from .summarization import IncrementalSummarizer, SummaryCycleResult, TextGenerator


_STOP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGINT", "SIGHUP") if hasattr(signal, name)
)


class HistorianMonitor:
    """Runs every step in one task; the sleep between polls is the only yield point.

    A stop request (signal or :meth:`request_stop`) never interrupts a step;
    the loop exits once the current step has finished.
    """

    def __init__(
        self,
        *,
        registry: SourceRegistry,
        tailer: Tailer,
        writer: ArchiveWriter,
        rotation: RotationManager,
        summarizer: IncrementalSummarizer,
        overview: OverviewGenerator,
        poll_interval_seconds: float = 60.0,
        rotation_check_every: int = 10,
        summary_check_every: int = 100,
        summary_interval_days: int = 7,
        session_log_dir: Optional[Path] = None,
        max_session_age_days: int = 0,
    ) -> None:
        self._registry = registry
        self._tailer = tailer
        self._writer = writer
        self._rotation = rotation
        self._summarizer = summarizer
        self._overview = overview
        self._poll_interval = poll_interval_seconds
        self._rotation_every = max(rotation_check_every, 1)
        self._summary_every = max(summary_check_every, 1)
        self._summary_interval_days = summary_interval_days
        self._session_log_dir = session_log_dir
        self._max_session_age_days = max_session_age_days
        self._sources: List[Source] = []
        self._iterations = 0
        self._stop_event: Optional[asyncio.Event] = None
        self._stop_requested = False

    @classmethod
    def from_settings(cls, settings: Settings, generator: Optional[TextGenerator] = None) -> "HistorianMonitor":
        registry = SourceRegistry.from_settings(settings)
        return cls(
            registry=registry,
            tailer=Tailer(registry, SourceOffsetStore(settings.offsets_path)),
            writer=ArchiveWriter(
                settings.raw_history_path,
                settings.session_log_dir,
                clock=lambda: now_in_timezone(settings.timezone),
            ),
            rotation=RotationManager(settings.raw_history_path, settings.max_raw_history_bytes),
            summarizer=IncrementalSummarizer.from_settings(settings, generator),
            overview=OverviewGenerator.from_settings(settings),
            poll_interval_seconds=settings.check_interval,
            rotation_check_every=settings.rotation_check_every,
            summary_check_every=settings.summary_check_every,
            summary_interval_days=settings.summary_interval_days,
            session_log_dir=settings.session_log_dir,
            max_session_age_days=settings.max_session_age_days,
        )

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def sources(self) -> List[Source]:
        return list(self._sources)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def resolve_sources(self) -> List[Source]:
        """Resolve sources; an empty result is fatal at startup."""
        sources = self._registry.resolve()
        if not sources:
            raise NoSourcesError("No log sources found. Configure SHELL_ACTIVITY_SOURCE in your config.")
        self._sources = sources
        return sources

    def _refresh_sources(self) -> None:
        refreshed = self._registry.resolve()
        if refreshed:
            self._sources = refreshed

    def capture_once(self) -> int:
        """Poll every source once and archive what was appended; returns records written."""
        chunks = self._tailer.poll(self._sources)
        written = 0
        for index, chunk in enumerate(chunks):
            try:
                self._writer.append(chunk.source_name, chunk.content)
            except OSError as exc:
                logger.error(
                    "archive append failed; will retry next poll",
                    extra={"path": str(self._writer.archive_path), "source": str(chunk.path), "error": str(exc)},
                )
                self._rewind(chunks[index:])
                break
            written += 1
        self._tailer.commit()
        return written

    def _rewind(self, chunks: List[CapturedChunk]) -> None:
        for chunk in chunks:
            self._tailer.offsets.set(chunk.path, chunk.start)

    def rotate(self) -> RotationResult:
        result = self._rotation.rotate_if_needed()
        prune_session_logs(self._session_log_dir, self._max_session_age_days)
        return result

    async def summarize(self) -> SummaryCycleResult:
        return await self._summarizer.run_cycle()

    async def run_summary_job(self) -> SummaryCycleResult:
        """Incremental summarization followed by overview regeneration."""
        result = await self.summarize()
        self._overview.write()
        return result

    async def step(self) -> None:
        self._iterations += 1
        self._guarded("source refresh", self._refresh_sources)
        self._guarded("capture", self.capture_once)

        if self._iterations % self._rotation_every == 0:
            self._guarded("rotation", self.rotate)

        if self._iterations % self._summary_every == 0:
            try:
                await self.summarize()
                if self._overview.is_stale(self._summary_interval_days):
                    logger.info(
                        "overview is stale; regenerating",
                        extra={"age_days": self._overview.age_days(), "interval_days": self._summary_interval_days},
                    )
                    self._overview.write()
            except Exception as exc:
                logger.exception("summary step failed", extra={"error": str(exc)})

    def _guarded(self, name: str, func) -> None:
        try:
            func()
        except Exception as exc:
            logger.exception("%s step failed", name, extra={"error": str(exc)})

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------
    def request_stop(self) -> None:
        self._stop_requested = True
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self, *, install_signal_handlers: bool = True, max_iterations: Optional[int] = None) -> None:
        sources = self.resolve_sources()
        logger.info(
            "monitor starting",
            extra={
                "archive": str(self._writer.archive_path),
                "interval_seconds": self._poll_interval,
                "sources": [str(source.path) for source in sources],
            },
        )

        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        if self._stop_requested:
            self._stop_event.set()
        installed = self._install_signal_handlers(loop) if install_signal_handlers else []

        try:
            while not self._stop_event.is_set():
                await self.step()
                if max_iterations is not None and self._iterations >= max_iterations:
                    break
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            self._stop_event = None
            logger.info("monitor stopped", extra={"iterations": self._iterations})

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> List[signal.Signals]:
        installed = []
        for sig in _STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(sig)
        return installed

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("shutting down monitor", extra={"signal": sig.name})
        self.request_stop()


__all__ = ["HistorianMonitor"]
