from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger("historian")

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure the historian logger, optionally mirroring records to ``log_file``."""
    logger.setLevel(level.upper())
    if logger.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            logger.warning("log file unavailable", extra={"path": str(log_file), "error": str(exc)})
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


__all__ = ["configure_logging", "logger"]
