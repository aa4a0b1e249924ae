"""Pinned dependency coordinates — immutable once parsed."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DependencyCoordinate(BaseModel):
    """A pinned ``(name, version)`` pair identifying one crate.

    Instances are produced by the coordinate parser, which enforces the
    crate naming grammar and the semver version grammar.  Constructing one
    directly skips that validation.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    @property
    def token(self) -> str:
        """Canonical ``name-version`` form, as written in a CRATES block."""
        return f"{self.name}-{self.version}"

    @property
    def archive_filename(self) -> str:
        """Filename the fetched archive is stored under."""
        return f"{self.token}.crate"

    def __str__(self) -> str:
        return self.token
