"""Size-bound rotation of the raw archive that never leaves a partial record."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from ...logging_config import logger
from ...utils.files import file_size
from .records import HEADER_PATTERN, is_header


RETAIN_NUMERATOR = 3
RETAIN_DENOMINATOR = 4
_SCAN_BLOCK = 1024 * 1024
_SCAN_OVERLAP = 4096


@dataclass(frozen=True)
class RotationResult:
    rotated: bool
    size_before: int
    size_after: int
    discarded: int = 0


class RotationManager:
    """Keeps the archive under ``max_bytes`` by dropping its oldest records.

    When the archive exceeds the limit the newest ``max_bytes * 3/4`` bytes are
    kept, trimmed forward to the first record header, and swapped in with an
    atomic rename.
    """

    def __init__(self, archive_path: Path, max_bytes: int) -> None:
        self._archive_path = archive_path
        self._max_bytes = max_bytes

    @property
    def enabled(self) -> bool:
        return self._max_bytes > 0

    def needs_rotation(self) -> bool:
        return self.enabled and file_size(self._archive_path) > self._max_bytes

    def rotate_if_needed(self) -> RotationResult:
        size = file_size(self._archive_path)
        if not self.enabled or size <= self._max_bytes:
            return RotationResult(rotated=False, size_before=size, size_after=size)

        keep = self._max_bytes * RETAIN_NUMERATOR // RETAIN_DENOMINATOR
        cut = size - keep
        logger.info(
            "archive exceeds limit; rotating",
            extra={"path": str(self._archive_path), "size": size, "max_bytes": self._max_bytes},
        )

        with self._archive_path.open("rb") as handle:
            start = _find_header_forward(handle, cut)
            if start is None:
                start = _find_header_backward(handle, cut)
                if start is None:
                    logger.warning(
                        "no record header found; keeping raw tail",
                        extra={"path": str(self._archive_path), "cut": cut},
                    )
                    start = cut
                else:
                    logger.warning(
                        "retained tail held no header; extending to previous record",
                        extra={"path": str(self._archive_path), "cut": cut, "start": start},
                    )
            handle.seek(start)
            self._replace_with(handle)

        new_size = file_size(self._archive_path)
        logger.info(
            "rotation complete",
            extra={"path": str(self._archive_path), "size_before": size, "size_after": new_size},
        )
        return RotationResult(rotated=True, size_before=size, size_after=new_size, discarded=start)

    def _replace_with(self, source: BinaryIO) -> None:
        directory = self._archive_path.parent
        fd, temp_name = tempfile.mkstemp(prefix=f".{self._archive_path.name}.", suffix=".rotating", dir=directory)
        try:
            with os.fdopen(fd, "wb") as target:
                shutil.copyfileobj(source, target)
                target.flush()
                os.fsync(target.fileno())
            os.replace(temp_name, self._archive_path)
        except BaseException:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise


def _at_line_start(handle: BinaryIO, position: int) -> bool:
    if position == 0:
        return True
    handle.seek(position - 1)
    return handle.read(1) == b"\n"


def _find_header_forward(handle: BinaryIO, position: int) -> Optional[int]:
    """Offset of the first header line starting at or after *position*."""
    partial = not _at_line_start(handle, position)
    handle.seek(position)
    if partial:
        handle.readline()
    while True:
        offset = handle.tell()
        line = handle.readline()
        if not line:
            return None
        if is_header(line):
            return offset


def _find_header_backward(handle: BinaryIO, position: int) -> Optional[int]:
    """Offset of the last header line starting before *position*."""
    end = position
    while end > 0:
        lo = max(0, end - _SCAN_BLOCK)
        handle.seek(lo)
        block = handle.read(end + _SCAN_OVERLAP - lo)
        best: Optional[int] = None
        for match in HEADER_PATTERN.finditer(block):
            candidate = lo + match.start()
            if candidate >= position:
                break
            if match.start() == 0 and not _at_line_start(handle, candidate):
                continue
            best = candidate
        if best is not None:
            return best
        end = lo
    return None


__all__ = ["RETAIN_DENOMINATOR", "RETAIN_NUMERATOR", "RotationManager", "RotationResult"]
