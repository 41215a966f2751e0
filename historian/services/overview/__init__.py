from .extractors import ArchiveDigest, digest_lines
from .generator import OverviewGenerator, human_size

__all__ = ["ArchiveDigest", "OverviewGenerator", "digest_lines", "human_size"]
