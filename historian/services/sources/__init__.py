from .registry import Source, SourceKind, SourceRegistry

__all__ = ["Source", "SourceKind", "SourceRegistry"]
