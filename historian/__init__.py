"""Terminal historian: durable capture and incremental summarization of shell activity."""

from .config import APP_VERSION as __version__

__all__ = ["__version__"]
