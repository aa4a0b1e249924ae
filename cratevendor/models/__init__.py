"""cratevendor data models — all Pydantic v2, all frozen (immutable)."""

from cratevendor.models.coordinates import DependencyCoordinate
from cratevendor.models.fetch import (
    Checksum,
    FetchDescriptor,
    FetchManifest,
    HashAlgorithm,
    VerifiedArchive,
)
from cratevendor.models.vendor import (
    VENDORED_SOURCE_NAME,
    RedirectConfig,
    ResolutionResult,
    VendorEntry,
    VendorTree,
)

__all__ = [
    # coordinates
    "DependencyCoordinate",
    # fetch
    "HashAlgorithm",
    "Checksum",
    "FetchDescriptor",
    "FetchManifest",
    "VerifiedArchive",
    # vendor
    "VENDORED_SOURCE_NAME",
    "VendorEntry",
    "RedirectConfig",
    "VendorTree",
    "ResolutionResult",
]
