"""Compute the pending buffer between the summary cursor and the archive end."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .state import PendingBuffer


def read_pending(archive_path: Path, cursor: int, max_bytes: int) -> Optional[PendingBuffer]:
    """Read at most *max_bytes* of the archive starting at *cursor*.

    When the pending range is larger than the cap, the read is cut back to
    the last complete line inside it (unless the cap holds no newline at
    all). Returns ``None`` when nothing is pending.
    """

    try:
        with archive_path.open("rb") as handle:
            handle.seek(0, 2)
            size = handle.tell()
            start = min(max(cursor, 0), size)
            if size <= start:
                return None
            handle.seek(start)
            data = handle.read(min(size - start, max_bytes))
    except FileNotFoundError:
        return None

    truncated = start + len(data) < size
    if truncated:
        newline = data.rfind(b"\n")
        if newline >= 0:
            data = data[: newline + 1]

    return PendingBuffer(
        start=start,
        end=start + len(data),
        archive_size=size,
        text=data.decode("utf-8", errors="replace"),
        truncated=truncated,
    )


__all__ = ["read_pending"]
