"""Vendor resolver — runs a full resolution pass.

Two phases, split by the outer build system's own download step::

    plan()    parse -> synthesize -> emit manifest        (before fetch)
    vendor()  verify every archive -> assemble the tree   (after fetch)

The resolver holds no state between calls; registry template, vendor root
and worker count are all explicit constructor arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.errors import ArchiveMissing
from cratevendor.core.integrity_gate import verify_archive
from cratevendor.core.manifest_emitter import emit_manifest
from cratevendor.core.uri_synthesizer import RegistryTemplate, synthesize_all
from cratevendor.core.vendor_assembler import VendorTreeAssembler
from cratevendor.models.fetch import (
    Checksum,
    FetchDescriptor,
    FetchManifest,
    VerifiedArchive,
)
from cratevendor.models.vendor import ResolutionResult
from cratevendor.sources.base import ArchiveSource

logger = logging.getLogger(__name__)


class VendorResolver:
    """Stateless coordinator for one package's vendoring pass.

    Parameters
    ----------
    template:
        Registry mirror template used to build download URLs.
    vendor_root:
        Directory the vendor tree is assembled in.
    config_path:
        Redirect config location; see ``VendorTreeAssembler``.
    max_workers:
        Bound on concurrent verification and unpack work.
    require_checksums:
        Treat a descriptor without a checksum as an integrity failure.
    """

    def __init__(
        self,
        template: RegistryTemplate,
        vendor_root: Path,
        *,
        config_path: Path | None = None,
        max_workers: int = 4,
        require_checksums: bool = False,
    ) -> None:
        self.template = template
        self.max_workers = max(1, max_workers)
        self.require_checksums = require_checksums
        self.assembler = VendorTreeAssembler(
            vendor_root, config_path=config_path, max_workers=self.max_workers
        )

    # ------------------------------------------------------------------
    # Phase 1: before fetch
    # ------------------------------------------------------------------

    def plan(
        self,
        *blocks: str,
        checksums: Mapping[str, Checksum] | None = None,
    ) -> FetchManifest:
        """Turn one or more CRATES blocks into the merged fetch manifest.

        Every block is parsed and synthesized before anything is returned,
        so a bad coordinate fails the pass before any fetch is requested.
        """
        self.template.check()
        groups = [
            synthesize_all(parse_coordinates(block), self.template, checksums)
            for block in blocks
        ]
        manifest = emit_manifest(*groups)
        logger.info(
            "Planned %d archives from %d block(s)", len(manifest), len(blocks)
        )
        return manifest

    # ------------------------------------------------------------------
    # Phase 2: after fetch
    # ------------------------------------------------------------------

    def verify(
        self, manifest: FetchManifest, source: ArchiveSource
    ) -> list[VerifiedArchive]:
        """Verify every archive in the manifest.

        All checks run to completion; the first failure in manifest order is
        raised and nothing is returned.
        """
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._verify_one, d, source) for d in manifest.descriptors
            ]
            wait(futures)

        failures = [f.exception() for f in futures if f.exception() is not None]
        if failures:
            logger.error(
                "%d of %d archives failed verification", len(failures), len(futures)
            )
            raise failures[0]
        return [f.result() for f in futures]

    def _verify_one(
        self, descriptor: FetchDescriptor, source: ArchiveSource
    ) -> VerifiedArchive:
        try:
            data, path = source.fetch(descriptor)
        except OSError as exc:
            raise ArchiveMissing(
                f"Cannot read archive for {descriptor.coordinate}: {exc}",
                context={"coordinate": descriptor.coordinate.token, "url": descriptor.url},
            ) from exc
        return verify_archive(
            descriptor, data, path, require_checksum=self.require_checksums
        )

    def vendor(self, manifest: FetchManifest, source: ArchiveSource) -> ResolutionResult:
        """Verify, then assemble.  Assembly never starts if verification fails."""
        archives = self.verify(manifest, source)
        tree = self.assembler.assemble(archives)
        unverified = [e.dirname for e in tree.unverified]
        if unverified:
            logger.warning(
                "%d vendored crate(s) have no checksum: %s",
                len(unverified),
                ", ".join(unverified),
            )
        return ResolutionResult(
            tree=tree, manifest_size=len(manifest), unverified=unverified
        )

    def resolve(
        self,
        *blocks: str,
        source: ArchiveSource,
        checksums: Mapping[str, Checksum] | None = None,
    ) -> ResolutionResult:
        """Run both phases back to back against an already-populated source."""
        manifest = self.plan(*blocks, checksums=checksums)
        return self.vendor(manifest, source)

