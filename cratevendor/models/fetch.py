"""Fetch-side models: checksums, descriptors, the merged manifest."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cratevendor.models.coordinates import DependencyCoordinate


class HashAlgorithm(str, Enum):
    """Digest algorithms accepted for archive verification.

    Declared weakest first; ``strength`` follows declaration order.
    """

    SHA256 = "sha256"
    SHA512 = "sha512"
    BLAKE2B = "blake2b"

    @property
    def strength(self) -> int:
        return list(HashAlgorithm).index(self)


class Checksum(BaseModel):
    """Expected digest (and optionally size) of one archive."""

    model_config = ConfigDict(frozen=True)

    algorithm: HashAlgorithm = HashAlgorithm.SHA256
    hexdigest: str
    size_bytes: int | None = None

    def __str__(self) -> str:
        return f"{self.algorithm.value}:{self.hexdigest}"


class FetchDescriptor(BaseModel):
    """Where to download one coordinate's archive and what to expect.

    Derived deterministically from a coordinate and a registry template.
    """

    model_config = ConfigDict(frozen=True)

    coordinate: DependencyCoordinate
    url: str
    expected_filename: str
    checksum: Checksum | None = None


class FetchManifest(BaseModel):
    """Ordered, URL-deduplicated descriptors for one package build.

    This is what the outer build system's download phase consumes.
    """

    model_config = ConfigDict(frozen=True)

    descriptors: list[FetchDescriptor] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def coordinates(self) -> list[DependencyCoordinate]:
        return [d.coordinate for d in self.descriptors]

    def to_fetch_list(self) -> list[dict[str, str]]:
        """``{url, expected_filename}`` pairs for the fetch collaborator."""
        return [
            {"url": d.url, "expected_filename": d.expected_filename}
            for d in self.descriptors
        ]

    def to_src_uri(self) -> str:
        """Render as ``SRC_URI`` style ``<url> -> <filename>`` lines."""
        return "\n".join(
            f"{d.url} -> {d.expected_filename}" for d in self.descriptors
        )


class VerifiedArchive(BaseModel):
    """An archive whose bytes passed the integrity gate.

    ``verified`` is ``False`` when no checksum was known and the archive was
    accepted on the sanity checks alone.
    """

    model_config = ConfigDict(frozen=True)

    descriptor: FetchDescriptor
    local_path: Path
    verified: bool
    sha256: str  # always computed, cargo's directory source needs it
    size_bytes: int
