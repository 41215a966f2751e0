"""Persist the archive offset up to which content has been summarized."""

from __future__ import annotations

import threading
from pathlib import Path

from ...logging_config import logger
from ...utils.files import atomic_write_text


class SummaryCursorStore:
    """Stores a single decimal byte offset as the whole file content."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> int:
        """Return the stored offset; a missing or corrupt file reads as 0."""
        with self._lock:
            try:
                raw = self._path.read_text(encoding="utf-8").strip()
            except FileNotFoundError:
                return 0
            except OSError as exc:
                logger.warning("summary cursor unreadable; using 0", extra={"path": str(self._path), "error": str(exc)})
                return 0

        try:
            value = int(raw)
        except ValueError:
            logger.warning("summary cursor not numeric; using 0", extra={"path": str(self._path), "value": raw[:40]})
            return 0
        if value < 0:
            logger.warning("summary cursor negative; using 0", extra={"path": str(self._path), "value": value})
            return 0
        return value

    def write(self, offset: int) -> None:
        if offset < 0:
            raise ValueError("summary cursor must be non-negative")
        with self._lock:
            atomic_write_text(self._path, f"{offset}\n")
        logger.debug("summary cursor updated", extra={"path": str(self._path), "offset": offset})


__all__ = ["SummaryCursorStore"]
