from .records import format_header, format_record, is_header
from .rotation import RotationManager, RotationResult
from .sessions import prune_session_logs
from .writer import ArchiveWriter

__all__ = [
    "ArchiveWriter",
    "RotationManager",
    "RotationResult",
    "format_header",
    "format_record",
    "is_header",
    "prune_session_logs",
]
