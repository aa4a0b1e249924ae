"""Manifest emitter — merges descriptor groups into one fetch manifest.

A package may declare several coordinate blocks; their descriptors are
concatenated, deduplicated by URL (first occurrence wins), and checked once
more for a name pinned to two versions across blocks.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from cratevendor.core.errors import DuplicateCoordinate
from cratevendor.models.fetch import FetchDescriptor, FetchManifest

logger = logging.getLogger(__name__)


def emit_manifest(*groups: Iterable[FetchDescriptor]) -> FetchManifest:
    """Combine descriptor groups into a single ordered manifest."""
    by_url: dict[str, FetchDescriptor] = {}
    by_name: dict[str, FetchDescriptor] = {}
    ordered: list[FetchDescriptor] = []

    for group in groups:
        for descriptor in group:
            coord = descriptor.coordinate
            pinned = by_name.get(coord.name)
            if pinned is not None and pinned.coordinate.version != coord.version:
                raise DuplicateCoordinate(
                    f"Crate {coord.name!r} pinned to both "
                    f"{pinned.coordinate.version} and {coord.version}",
                    context={
                        "name": coord.name,
                        "first": pinned.coordinate.token,
                        "second": coord.token,
                    },
                )
            if descriptor.url in by_url:
                continue
            by_url[descriptor.url] = descriptor
            by_name.setdefault(coord.name, descriptor)
            ordered.append(descriptor)

    logger.debug("Emitted manifest with %d descriptors", len(ordered))
    return FetchManifest(descriptors=ordered)
