"""Archive record format shared by the writer, rotation and summarizer."""

from __future__ import annotations

import re
from datetime import datetime

from ...utils.timezones import format_timestamp

HEADER_PATTERN = re.compile(
    rb"^--- \[[^\n]*\] \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} ---$",
    re.MULTILINE,
)


def format_header(source_name: str, moment: datetime) -> str:
    return f"--- [{source_name}] {format_timestamp(moment)} ---"


def format_record(source_name: str, moment: datetime, content: str) -> str:
    """Render one record: the header line followed by newline-terminated content."""
    body = content.rstrip("\n")
    return f"{format_header(source_name, moment)}\n{body}\n"


def is_header(line: bytes) -> bool:
    return HEADER_PATTERN.match(line.rstrip(b"\r\n")) is not None


__all__ = ["HEADER_PATTERN", "format_header", "format_record", "is_header"]
