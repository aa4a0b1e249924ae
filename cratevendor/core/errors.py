"""Structured error taxonomy for a resolution pass.

Every failure a pass can produce is a ``VendorError`` subclass carrying a
stable ``code`` and a ``context`` mapping naming the offending coordinate,
URL, or path, so the outer orchestrator can report it without re-running.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class VendorError(RuntimeError):
    """Base class for all resolution-pass failures."""

    code: str = "E_VENDOR"

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, str] = {
            k: str(v) for k, v in (context or {}).items() if v is not None
        }

    def __str__(self) -> str:
        parts = [self.message]
        for key, value in self.context.items():
            parts.append(f"  {key}: {value}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "error": type(self).__name__,
            "message": self.message,
            "context": dict(self.context),
        }


# Parsing / synthesis — raised before any fetch is requested.


class MalformedCoordinate(VendorError):
    """A token has no valid ``-<semver>`` suffix or an invalid crate name."""

    code = "E_MALFORMED_COORDINATE"


class DuplicateCoordinate(VendorError):
    """The same crate name is pinned to two different versions."""

    code = "E_DUPLICATE_COORDINATE"


class UnsupportedCoordinate(VendorError):
    """A coordinate or template cannot be expressed as a registry URL."""

    code = "E_UNSUPPORTED_COORDINATE"


# Integrity / unpack — raised after fetch, before the redirect config is written.


class ArchiveMissing(VendorError):
    """The archive source could not produce bytes for a descriptor."""

    code = "E_ARCHIVE_MISSING"


class IntegrityMismatch(VendorError):
    """Archive digest disagrees with the expected checksum."""

    code = "E_INTEGRITY_MISMATCH"


class TruncatedArchive(VendorError):
    """Archive is empty, the wrong size, or not a readable tarball."""

    code = "E_TRUNCATED_ARCHIVE"


class UnpackError(VendorError):
    """Archive could not be unpacked into its vendor entry."""

    code = "E_UNPACK"


class CollisionError(VendorError):
    """Two archives claim the same ``(name, version)`` vendor entry.

    Unreachable when coordinates were parsed by the coordinate parser;
    seeing one indicates an internal-consistency fault.
    """

    code = "E_COLLISION"


# Audit


class IndexUnavailable(VendorError):
    """The local crate index checkout is missing or unreadable."""

    code = "E_INDEX_UNAVAILABLE"
