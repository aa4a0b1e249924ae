"""Vendor tree models — entries, redirect config, pass result."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cratevendor.models.coordinates import DependencyCoordinate

# Name of the source-replacement target written into the redirect config.
VENDORED_SOURCE_NAME = "vendored-sources"


class VendorEntry(BaseModel):
    """One unpacked crate directory inside the vendor tree."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    path: Path
    verified: bool = True

    @property
    def dirname(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def coordinate(self) -> DependencyCoordinate:
        return DependencyCoordinate(name=self.name, version=self.version)


class RedirectConfig(BaseModel):
    """Cargo source-replacement config pointing crates.io at the vendor tree.

    Always regenerated in full from the complete entry list.
    """

    model_config = ConfigDict(frozen=True)

    vendor_root: Path
    entries: list[VendorEntry]
    replaced_source: str = "crates-io"

    def to_document(self) -> dict:
        """Build the TOML document as a plain dict.

        The ``[cratevendor]`` table is ignored by cargo; it records which
        entry directories this config was generated for.
        """
        return {
            "source": {
                self.replaced_source: {"replace-with": VENDORED_SOURCE_NAME},
                VENDORED_SOURCE_NAME: {"directory": str(self.vendor_root)},
            },
            "cratevendor": {
                "entries": {
                    e.dirname: str(e.path.relative_to(self.vendor_root))
                    for e in sorted(self.entries, key=lambda e: e.dirname)
                },
            },
        }


class VendorTree(BaseModel):
    """The assembled tree: entries plus where the redirect config was written."""

    model_config = ConfigDict(frozen=True)

    root: Path
    entries: list[VendorEntry]
    config_path: Path

    @property
    def unverified(self) -> list[VendorEntry]:
        return [e for e in self.entries if not e.verified]


class ResolutionResult(BaseModel):
    """Outcome of one successful resolution pass.

    Failures are never represented here — they raise a ``VendorError``.
    """

    model_config = ConfigDict(frozen=True)

    tree: VendorTree
    manifest_size: int
    unverified: list[str] = Field(default_factory=list)
