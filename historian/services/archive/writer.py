"""Append-only writer for the raw archive and its per-day session mirrors."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ...logging_config import logger
from ...utils.timezones import DAY_FORMAT, now_in_timezone
from .records import format_record


Clock = Callable[[], datetime]


class ArchiveWriter:
    """Appends whole records to the archive and mirrors them to the day's session log.

    Assumes a single writing process; nothing here locks the archive.
    """

    def __init__(
        self,
        archive_path: Path,
        session_log_dir: Optional[Path] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._archive_path = archive_path
        self._session_log_dir = session_log_dir
        self._clock = clock or now_in_timezone

    @property
    def archive_path(self) -> Path:
        return self._archive_path

    def session_file_for(self, moment: datetime) -> Optional[Path]:
        if self._session_log_dir is None:
            return None
        return self._session_log_dir / f"session_{moment.strftime(DAY_FORMAT)}.log"

    def append(self, source_name: str, content: str) -> int:
        """Append one record for *source_name*; returns the bytes added to the archive."""

        moment = self._clock()
        data = format_record(source_name, moment, content).encode("utf-8")
        written = _append_whole(self._archive_path, data)

        session_file = self.session_file_for(moment)
        if session_file is not None:
            try:
                _append_whole(session_file, data)
            except OSError as exc:
                logger.warning(
                    "session log append failed",
                    extra={"path": str(session_file), "error": str(exc)},
                )

        logger.debug(
            "captured record",
            extra={"source": source_name, "lines": content.count("\n") + 1, "bytes": written},
        )
        return written


def _append_whole(path: Path, data: bytes) -> int:
    """Append *data*, first terminating a dangling final line if one exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+b") as handle:
        handle.seek(0, 2)
        if handle.tell() > 0:
            handle.seek(-1, 2)
            if handle.read(1) != b"\n":
                data = b"\n" + data
        handle.write(data)
    return len(data)


__all__ = ["ArchiveWriter", "Clock"]
