"""Persistence for per-file tail offsets so restarts neither repeat nor skip bytes."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional

from ...logging_config import logger
from ...utils.files import atomic_write_text


class SourceOffsetStore:
    """Maps file path to the last observed byte size, backed by a JSON file.

    With ``path=None`` the store is memory-only for the process lifetime.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._offsets: Dict[str, int] = {}
        self._dirty = False
        self._load()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, file_path: Path) -> int:
        with self._lock:
            return self._offsets.get(str(file_path), 0)

    def set(self, file_path: Path, offset: int) -> None:
        key = str(file_path)
        with self._lock:
            if self._offsets.get(key) == offset:
                return
            self._offsets[key] = offset
            self._dirty = True

    def snapshot(self) -> Mapping[str, int]:
        with self._lock:
            return dict(self._offsets)

    def flush(self) -> None:
        """Persist pending changes atomically; a no-op when nothing changed."""
        with self._lock:
            if not self._dirty or self._path is None:
                return
            payload = json.dumps(self._offsets, indent=2, sort_keys=True)
            try:
                atomic_write_text(self._path, payload)
            except OSError as exc:
                logger.warning(
                    "failed to persist source offsets",
                    extra={"path": str(self._path), "error": str(exc)},
                )
                return
            self._dirty = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _load(self) -> None:
        if self._path is None:
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, ValueError) as exc:
            logger.warning(
                "source offsets unreadable; starting empty",
                extra={"path": str(self._path), "error": str(exc)},
            )
            return

        if not isinstance(data, dict):
            logger.warning("source offsets payload invalid; expected object", extra={"path": str(self._path)})
            return

        for key, value in data.items():
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                self._offsets[str(key)] = value


__all__ = ["SourceOffsetStore"]
