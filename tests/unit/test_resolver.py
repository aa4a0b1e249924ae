"""Tests for VendorResolver — phase ordering and fail-fast behaviour."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from cratevendor.core.errors import (
    ArchiveMissing,
    DuplicateCoordinate,
    IntegrityMismatch,
    MalformedCoordinate,
    UnsupportedCoordinate,
)
from cratevendor.core.resolver import VendorResolver
from cratevendor.core.uri_synthesizer import RegistryTemplate
from cratevendor.models.fetch import Checksum, FetchDescriptor
from cratevendor.sources.base import ArchiveSource
from cratevendor.sources.distdir import DistdirSource


class RecordingSource:
    """ArchiveSource that records which descriptors were requested."""

    def __init__(self, inner: DistdirSource) -> None:
        self.inner = inner
        self.requested: list[str] = []

    def fetch(self, descriptor: FetchDescriptor) -> tuple[bytes, Path]:
        self.requested.append(descriptor.expected_filename)
        return self.inner.fetch(descriptor)


class TestPlan:
    def test_multiple_blocks(self, resolver: VendorResolver):
        manifest = resolver.plan("adler32-1.0.4 xattr-0.2.2", "xattr-0.2.2 arrayref-0.3.6")
        assert [d.coordinate.token for d in manifest.descriptors] == [
            "adler32-1.0.4",
            "xattr-0.2.2",
            "arrayref-0.3.6",
        ]

    def test_checksums_attached(self, resolver: VendorResolver):
        checksum = Checksum(hexdigest="a" * 64)
        manifest = resolver.plan("xattr-0.2.2", checksums={"xattr-0.2.2.crate": checksum})
        assert manifest.descriptors[0].checksum == checksum

    def test_duplicate_fails_without_descriptors(self, resolver: VendorResolver):
        with pytest.raises(DuplicateCoordinate):
            resolver.plan("syn-1.0.0 syn-2.0.0")

    def test_malformed_fails(self, resolver: VendorResolver):
        with pytest.raises(MalformedCoordinate):
            resolver.plan("adler32-1.0.4", "not-a-coordinate")

    def test_bad_template_fails_even_when_empty(self, vendor_root: Path):
        resolver = VendorResolver(RegistryTemplate(url="gopher://x/{name}/{version}"), vendor_root)
        with pytest.raises(UnsupportedCoordinate):
            resolver.plan("")


class TestVendor:
    def test_source_protocol(self, source: DistdirSource):
        assert isinstance(source, ArchiveSource)

    def test_success(self, resolver: VendorResolver, source: DistdirSource):
        manifest = resolver.plan("adler32-1.0.4 arrayref-0.3.6 xattr-0.2.2")
        result = resolver.vendor(manifest, source)
        assert result.manifest_size == 3
        assert sorted(result.unverified) == ["adler32-1.0.4", "arrayref-0.3.6", "xattr-0.2.2"]
        assert result.tree.config_path.is_file()

    def test_verified_with_checksums(self, resolver: VendorResolver, distdir: Path, source):
        checksums = {
            p.name: Checksum(hexdigest=hashlib.sha256(p.read_bytes()).hexdigest())
            for p in distdir.iterdir()
        }
        result = resolver.resolve(
            "adler32-1.0.4 arrayref-0.3.6 xattr-0.2.2", source=source, checksums=checksums
        )
        assert result.unverified == []
        assert all(e.verified for e in result.tree.entries)

    def test_integrity_failure_never_assembles(
        self, resolver: VendorResolver, source: DistdirSource, vendor_root: Path
    ):
        checksums = {"arrayref-0.3.6.crate": Checksum(hexdigest="0" * 64)}
        manifest = resolver.plan("adler32-1.0.4 arrayref-0.3.6", checksums=checksums)
        with pytest.raises(IntegrityMismatch) as excinfo:
            resolver.vendor(manifest, source)
        assert excinfo.value.context["coordinate"] == "arrayref-0.3.6"
        assert not vendor_root.exists()

    def test_missing_archive(self, resolver: VendorResolver, source: DistdirSource):
        manifest = resolver.plan("adler32-1.0.4 serde-1.0.0")
        with pytest.raises(ArchiveMissing) as excinfo:
            resolver.vendor(manifest, source)
        assert excinfo.value.context["coordinate"] == "serde-1.0.0"

    def test_require_checksums(self, template, vendor_root: Path, source: DistdirSource):
        strict = VendorResolver(template, vendor_root, require_checksums=True)
        with pytest.raises(IntegrityMismatch):
            strict.resolve("adler32-1.0.4", source=source)

    def test_every_descriptor_fetched_once(self, resolver: VendorResolver, source):
        recording = RecordingSource(source)
        resolver.resolve("adler32-1.0.4 xattr-0.2.2", "xattr-0.2.2", source=recording)
        assert sorted(recording.requested) == ["adler32-1.0.4.crate", "xattr-0.2.2.crate"]
