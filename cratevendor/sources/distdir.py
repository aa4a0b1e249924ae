"""Distfiles-directory source: ``<distdir>/<expected_filename>``."""

from __future__ import annotations

import logging
from pathlib import Path

from cratevendor.core.errors import ArchiveMissing
from cratevendor.models.fetch import FetchDescriptor

logger = logging.getLogger(__name__)


class DistdirSource:
    """Reads archives the download phase stored in a flat directory.

    Parameters
    ----------
    distdir:
        Directory holding fetched archives under their expected filenames.
    """

    def __init__(self, distdir: Path | str) -> None:
        self._distdir = Path(distdir)

    @property
    def distdir(self) -> Path:
        return self._distdir

    def fetch(self, descriptor: FetchDescriptor) -> tuple[bytes, Path]:
        path = self._distdir / descriptor.expected_filename
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise ArchiveMissing(
                f"Archive for {descriptor.coordinate} not found in {self._distdir}",
                context={
                    "coordinate": descriptor.coordinate.token,
                    "url": descriptor.url,
                    "path": path,
                },
            ) from exc
        logger.debug("Read %d bytes from %s", len(data), path)
        return data, path
