"""Tests for the fetch integrity gate and Manifest checksum loading."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from cratevendor.core.errors import IntegrityMismatch, TruncatedArchive
from cratevendor.core.integrity_gate import (
    load_manifest_checksums,
    strongest,
    verify_archive,
)
from cratevendor.core.uri_synthesizer import synthesize
from cratevendor.models.coordinates import DependencyCoordinate
from cratevendor.models.fetch import Checksum, HashAlgorithm

ADLER = DependencyCoordinate(name="adler32", version="1.0.4")


@pytest.fixture
def archive(make_crate) -> bytes:
    return make_crate("adler32", "1.0.4")


def _descriptor(template, checksum=None):
    return synthesize(ADLER, template, checksum)


class TestVerifyArchive:
    def test_matching_sha256(self, template, archive, tmp_path: Path):
        checksum = Checksum(hexdigest=hashlib.sha256(archive).hexdigest())
        result = verify_archive(_descriptor(template, checksum), archive, tmp_path / "a.crate")
        assert result.verified is True
        assert result.sha256 == hashlib.sha256(archive).hexdigest()
        assert result.size_bytes == len(archive)

    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    def test_each_algorithm(self, template, archive, tmp_path: Path, algorithm):
        hexdigest = hashlib.new(algorithm.value, archive).hexdigest()
        checksum = Checksum(algorithm=algorithm, hexdigest=hexdigest.upper())
        assert verify_archive(_descriptor(template, checksum), archive, tmp_path).verified

    def test_mismatch_rejected(self, template, archive, tmp_path: Path):
        checksum = Checksum(hexdigest="0" * 64)
        with pytest.raises(IntegrityMismatch) as excinfo:
            verify_archive(_descriptor(template, checksum), archive, tmp_path / "a.crate")
        ctx = excinfo.value.context
        assert ctx["coordinate"] == "adler32-1.0.4"
        assert ctx["expected"] == "0" * 64
        assert ctx["actual"] == hashlib.sha256(archive).hexdigest()
        assert "crates.io" in ctx["url"]

    def test_no_checksum_accepted_unverified(self, template, archive, tmp_path: Path, caplog):
        with caplog.at_level("WARNING"):
            result = verify_archive(_descriptor(template), archive, tmp_path)
        assert result.verified is False
        assert "No checksum" in caplog.text

    def test_no_checksum_when_required(self, template, archive, tmp_path: Path):
        with pytest.raises(IntegrityMismatch):
            verify_archive(_descriptor(template), archive, tmp_path, require_checksum=True)

    def test_empty(self, template, tmp_path: Path):
        with pytest.raises(TruncatedArchive):
            verify_archive(_descriptor(template), b"", tmp_path)

    def test_size_mismatch(self, template, archive, tmp_path: Path):
        checksum = Checksum(
            hexdigest=hashlib.sha256(archive).hexdigest(), size_bytes=len(archive) + 1
        )
        with pytest.raises(TruncatedArchive):
            verify_archive(_descriptor(template, checksum), archive, tmp_path)

    def test_truncated_gzip(self, template, archive, tmp_path: Path):
        truncated = archive[: len(archive) // 2]
        with pytest.raises(TruncatedArchive):
            verify_archive(_descriptor(template), truncated, tmp_path)

    def test_not_a_tarball(self, template, tmp_path: Path):
        with pytest.raises(TruncatedArchive):
            verify_archive(_descriptor(template), b"<html>404</html>", tmp_path)

    def test_hash_checked_before_format(self, template, tmp_path: Path):
        data = b"<html>404</html>"
        checksum = Checksum(hexdigest="f" * 64)
        with pytest.raises(IntegrityMismatch):
            verify_archive(_descriptor(template, checksum), data, tmp_path)


class TestManifestChecksums:
    def test_parses_dist_lines(self):
        text = (
            "AUX fix.patch 12 BLAKE2B aa SHA512 bb\n"
            "DIST adler32-1.0.4.crate 6228 BLAKE2B "
            + "c" * 128
            + " SHA512 "
            + "d" * 128
            + "\nEBUILD foo-1.0.ebuild 99 SHA512 ee\n"
            "DIST xattr-0.2.2.crate 11750 SHA256 " + "E" * 64 + "\n"
        )
        checksums = load_manifest_checksums(text)
        assert set(checksums) == {"adler32-1.0.4.crate", "xattr-0.2.2.crate"}
        adler = checksums["adler32-1.0.4.crate"]
        assert adler.algorithm is HashAlgorithm.BLAKE2B
        assert adler.size_bytes == 6228
        assert checksums["xattr-0.2.2.crate"].hexdigest == "e" * 64

    def test_unknown_algorithms_skipped(self):
        assert load_manifest_checksums("DIST a-1.0.0.crate 5 MD5 abcd\n") == {}

    @pytest.mark.parametrize(
        "line",
        ["DIST a-1.0.0.crate", "DIST a-1.0.0.crate big SHA512 aa", "DIST a-1.0.0.crate 5 SHA512"],
    )
    def test_malformed(self, line):
        with pytest.raises(ValueError):
            load_manifest_checksums(line)

    def test_strongest(self):
        weak = Checksum(algorithm=HashAlgorithm.SHA256, hexdigest="a")
        strong = Checksum(algorithm=HashAlgorithm.BLAKE2B, hexdigest="b")
        assert strongest([weak, strong]) is strong
        assert strongest([]) is None
