from .offset_store import SourceOffsetStore
from .tailer import CapturedChunk, Tailer

__all__ = ["CapturedChunk", "SourceOffsetStore", "Tailer"]
