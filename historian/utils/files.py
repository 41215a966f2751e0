"""Small filesystem helpers shared by the stores."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def file_size(path: Path) -> int:
    """Size of *path* in bytes, 0 when it does not exist."""
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return 0


def atomic_write_text(path: Path, data: str) -> None:
    """Write *data* to a sibling temp file then rename it over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise


__all__ = ["atomic_write_text", "file_size"]
