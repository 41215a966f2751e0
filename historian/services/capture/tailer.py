"""Compute bytes appended to each source since it was last observed."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ...logging_config import logger
from ..sources import Source, SourceRegistry
from .offset_store import SourceOffsetStore


@dataclass(frozen=True)
class CapturedChunk:
    """New content read from one file in a single poll."""

    path: Path
    content: str
    start: int
    end: int

    @property
    def source_name(self) -> str:
        return self.path.name


class Tailer:
    """Reads exactly the byte range ``[last_size, current_size)`` of each file."""

    def __init__(self, registry: SourceRegistry, offsets: SourceOffsetStore) -> None:
        self._registry = registry
        self._offsets = offsets

    @property
    def offsets(self) -> SourceOffsetStore:
        return self._offsets

    def read_new(self, path: Path) -> Optional[CapturedChunk]:
        """Return new content of *path*, or ``None`` when nothing usable was appended.

        A file that shrank (truncated or replaced) has its offset reset to 0
        and is captured in full on the next poll.
        """

        last_size = self._offsets.get(path)
        try:
            current_size = path.stat().st_size
        except OSError as exc:
            logger.warning("source unavailable; skipping", extra={"path": str(path), "error": str(exc)})
            return None

        if current_size == last_size:
            return None
        if current_size < last_size:
            logger.info(
                "source shrank; resetting offset",
                extra={"path": str(path), "last_size": last_size, "current_size": current_size},
            )
            self._offsets.set(path, 0)
            return None

        try:
            with path.open("rb") as handle:
                handle.seek(last_size)
                data = handle.read(current_size - last_size)
        except OSError as exc:
            logger.warning("source read failed; skipping", extra={"path": str(path), "error": str(exc)})
            return None

        end = last_size + len(data)
        self._offsets.set(path, end)

        content = data.decode("utf-8", errors="replace").rstrip("\n")
        if not content.strip():
            return None
        return CapturedChunk(path=path, content=content, start=last_size, end=end)

    def poll(self, sources: Iterable[Source], now: Optional[float] = None) -> List[CapturedChunk]:
        """Poll every file behind *sources*.

        Offsets advance in memory only; call :meth:`commit` once the chunks
        are safely archived.
        """

        chunks: List[CapturedChunk] = []
        for path in self._registry.iter_files(sources, now=now):
            chunk = self.read_new(path)
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    def commit(self) -> None:
        self._offsets.flush()


__all__ = ["CapturedChunk", "Tailer"]
