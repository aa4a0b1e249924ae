"""Archive sources — hand fetched archive bytes back to the resolver."""

from cratevendor.sources.base import ArchiveSource
from cratevendor.sources.distdir import DistdirSource

__all__ = ["ArchiveSource", "DistdirSource"]
