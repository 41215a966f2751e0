from .files import atomic_write_text, file_size
from .timezones import (
    TIMESTAMP_FORMAT,
    format_timestamp,
    now_in_timezone,
    resolve_timezone,
)

__all__ = [
    "atomic_write_text",
    "file_size",
    "TIMESTAMP_FORMAT",
    "format_timestamp",
    "now_in_timezone",
    "resolve_timezone",
]
