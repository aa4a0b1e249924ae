"""Fetch integrity gate — verifies archive bytes handed back by the fetcher.

This module never performs network I/O.  It is given the raw bytes (and the
path the fetch collaborator stored them at) and decides whether the archive
may enter the vendor tree.

Policy when a descriptor carries no checksum: the archive is accepted on the
size and format checks alone, flagged ``verified=False``, and a warning is
logged.  Callers that want missing checksums to be fatal pass
``require_checksum=True``.
"""

from __future__ import annotations

import io
import logging
import tarfile
import zlib
from pathlib import Path

from cratevendor.core.errors import IntegrityMismatch, TruncatedArchive
from cratevendor.core.hasher import digest_hex, sha256_hex
from cratevendor.models.fetch import (
    Checksum,
    FetchDescriptor,
    HashAlgorithm,
    VerifiedArchive,
)

logger = logging.getLogger(__name__)

# Gentoo Manifest algorithm names we understand.
_MANIFEST_ALGORITHMS: dict[str, HashAlgorithm] = {
    "SHA256": HashAlgorithm.SHA256,
    "SHA512": HashAlgorithm.SHA512,
    "BLAKE2B": HashAlgorithm.BLAKE2B,
}


def _context(descriptor: FetchDescriptor, local_path: Path) -> dict[str, str]:
    return {
        "coordinate": descriptor.coordinate.token,
        "url": descriptor.url,
        "path": str(local_path),
    }


def check_tarball(data: bytes) -> int:
    """Open ``data`` as a gzip tarball and return its member count.

    Raises ``tarfile.TarError`` (or a decompression error) if unreadable.
    """
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        return len(tar.getmembers())


def verify_archive(
    descriptor: FetchDescriptor,
    data: bytes,
    local_path: Path,
    *,
    require_checksum: bool = False,
) -> VerifiedArchive:
    """Verify one archive against its descriptor.

    Raises
    ------
    TruncatedArchive
        Empty data, a size that disagrees with the recorded size, or bytes
        that are not a readable gzip tarball.
    IntegrityMismatch
        Digest disagreement, or no checksum while ``require_checksum`` is set.
    """
    ctx = _context(descriptor, local_path)
    checksum = descriptor.checksum

    if not data:
        raise TruncatedArchive(
            f"Archive for {descriptor.coordinate} is empty", context=ctx
        )

    if checksum is not None and checksum.size_bytes is not None:
        if len(data) != checksum.size_bytes:
            raise TruncatedArchive(
                f"Archive for {descriptor.coordinate} is {len(data)} bytes, "
                f"expected {checksum.size_bytes}",
                context=ctx,
            )

    if checksum is not None:
        actual = digest_hex(data, checksum.algorithm)
        if actual.lower() != checksum.hexdigest.lower():
            raise IntegrityMismatch(
                f"Checksum mismatch for {descriptor.coordinate}",
                context={
                    **ctx,
                    "algorithm": checksum.algorithm.value,
                    "expected": checksum.hexdigest,
                    "actual": actual,
                },
            )
    elif require_checksum:
        raise IntegrityMismatch(
            f"No checksum known for {descriptor.coordinate} and checksums are required",
            context=ctx,
        )

    try:
        members = check_tarball(data)
    except (tarfile.TarError, EOFError, OSError, zlib.error) as exc:
        raise TruncatedArchive(
            f"Archive for {descriptor.coordinate} cannot be opened: {exc}",
            context=ctx,
        ) from exc
    if members == 0:
        raise TruncatedArchive(
            f"Archive for {descriptor.coordinate} contains no files", context=ctx
        )

    if checksum is None:
        logger.warning(
            "No checksum for %s (%s); accepted unverified", descriptor.coordinate, descriptor.url
        )

    return VerifiedArchive(
        descriptor=descriptor,
        local_path=Path(local_path),
        verified=checksum is not None,
        sha256=sha256_hex(data),
        size_bytes=len(data),
    )


def strongest(checksums: list[Checksum]) -> Checksum | None:
    """Pick the checksum with the strongest algorithm, if any."""
    if not checksums:
        return None
    return max(checksums, key=lambda c: c.algorithm.strength)


def load_manifest_checksums(text: str) -> dict[str, Checksum]:
    """Parse ``DIST`` lines of a Gentoo-style ``Manifest``.

    Line format: ``DIST <filename> <size> <ALGO> <hex> [<ALGO> <hex> ...]``.
    Other line types are ignored.  Unknown algorithms are skipped; the
    strongest known one is kept per file.

    Raises ``ValueError`` on a malformed ``DIST`` line.
    """
    result: dict[str, Checksum] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        fields = line.split()
        if not fields or fields[0] != "DIST":
            continue
        if len(fields) < 5 or len(fields) % 2 != 1 or not fields[2].isdigit():
            raise ValueError(f"Malformed DIST entry on line {lineno}: {line!r}")
        filename, size = fields[1], int(fields[2])
        known = [
            Checksum(
                algorithm=_MANIFEST_ALGORITHMS[algo],
                hexdigest=hexdigest.lower(),
                size_bytes=size,
            )
            for algo, hexdigest in zip(fields[3::2], fields[4::2])
            if algo in _MANIFEST_ALGORITHMS
        ]
        best = strongest(known)
        if best is None:
            logger.debug("No supported digest for %s on line %d", filename, lineno)
            continue
        result[filename] = best
    return result
