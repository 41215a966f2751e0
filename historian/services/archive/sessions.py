"""Retention for the per-day session logs."""

from __future__ import annotations

import time
from pathlib import Path
from typing import List, Optional

from ...logging_config import logger


def prune_session_logs(session_dir: Optional[Path], max_age_days: int, now: Optional[float] = None) -> List[Path]:
    """Delete ``session_*.log`` files not modified within *max_age_days*."""

    if session_dir is None or max_age_days <= 0 or not session_dir.is_dir():
        return []

    cutoff = (time.time() if now is None else now) - max_age_days * 86400
    removed: List[Path] = []
    for path in sorted(session_dir.glob("session_*.log")):
        try:
            if path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
        except OSError as exc:
            logger.warning("session log prune failed", extra={"path": str(path), "error": str(exc)})
            continue
        removed.append(path)

    if removed:
        logger.info("pruned session logs", extra={"count": len(removed), "dir": str(session_dir)})
    return removed


__all__ = ["prune_session_logs"]
