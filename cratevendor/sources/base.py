"""The ``ArchiveSource`` protocol.

Downloading and caching archives is the outer build system's job.  By the
time the resolver verifies a manifest, every archive already sits somewhere
local; a source only has to find it and return its bytes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from cratevendor.models.fetch import FetchDescriptor


@runtime_checkable
class ArchiveSource(Protocol):
    """Protocol for whatever hands back already-fetched archives.

    ``fetch`` returns the raw bytes plus the path they are stored at, and
    raises ``ArchiveMissing`` when the descriptor's archive is unavailable.
    """

    def fetch(self, descriptor: FetchDescriptor) -> tuple[bytes, Path]:
        ...
