"""URI synthesizer — coordinate + registry template -> fetch descriptor.

Pure and deterministic: no I/O, and the same coordinate and template always
produce an identical ``FetchDescriptor``.

Supported placeholders (a subset of cargo's ``dl`` template markers):

``{name}``         crate name (``{crate}`` is accepted as an alias)
``{version}``      crate version
``{prefix}``       index directory prefix, e.g. ``se/rd`` for ``serde``
``{lowerprefix}``  lower-cased ``{prefix}``
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from urllib.parse import quote, urlsplit

from pydantic import BaseModel, ConfigDict

from cratevendor.core.coordinate_parser import is_valid_name, is_valid_version
from cratevendor.core.errors import UnsupportedCoordinate
from cratevendor.models.coordinates import DependencyCoordinate
from cratevendor.models.fetch import Checksum, FetchDescriptor

CRATES_IO_TEMPLATE = "https://crates.io/api/v1/crates/{name}/{version}/download"

ALLOWED_SCHEMES = frozenset({"http", "https", "file"})
_PLACEHOLDER = re.compile(r"\{[^{}]*\}")


def index_prefix(name: str) -> str:
    """Directory prefix used by the crates.io index layout for ``name``."""
    if len(name) <= 2:
        return str(len(name))
    if len(name) == 3:
        return f"3/{name[0]}"
    return f"{name[:2]}/{name[2:4]}"


class RegistryTemplate(BaseModel):
    """A registry mirror URL template.

    Passed explicitly to every synthesis call; there is no process-wide
    registry setting.
    """

    model_config = ConfigDict(frozen=True)

    url: str = CRATES_IO_TEMPLATE

    def check(self) -> None:
        """Raise ``UnsupportedCoordinate`` if the template is unusable."""
        scheme = urlsplit(self.url).scheme
        if scheme not in ALLOWED_SCHEMES:
            raise UnsupportedCoordinate(
                f"Registry template scheme {scheme!r} is not supported",
                context={"template": self.url},
            )
        if "{name}" not in self.url and "{crate}" not in self.url:
            raise UnsupportedCoordinate(
                "Registry template has no {name} placeholder",
                context={"template": self.url},
            )
        if "{version}" not in self.url:
            raise UnsupportedCoordinate(
                "Registry template has no {version} placeholder",
                context={"template": self.url},
            )

    def render(self, coordinate: DependencyCoordinate) -> str:
        name = quote(coordinate.name, safe="")
        version = quote(coordinate.version, safe="")
        prefix = quote(index_prefix(coordinate.name), safe="/")
        replacements = {
            "{name}": name,
            "{crate}": name,
            "{version}": version,
            "{prefix}": prefix,
            "{lowerprefix}": prefix.lower(),
        }
        url = _PLACEHOLDER.sub(
            lambda m: replacements.get(m.group(0), m.group(0)), self.url
        )
        leftover = _PLACEHOLDER.search(url)
        if leftover:
            raise UnsupportedCoordinate(
                f"Unknown placeholder {leftover.group(0)} in registry template",
                context={"template": self.url, "coordinate": coordinate.token},
            )
        return url


def synthesize(
    coordinate: DependencyCoordinate,
    template: RegistryTemplate,
    checksum: Checksum | None = None,
) -> FetchDescriptor:
    """Map one coordinate to its fetch descriptor."""
    if not is_valid_name(coordinate.name) or not is_valid_version(coordinate.version):
        raise UnsupportedCoordinate(
            f"Coordinate {coordinate.token!r} contains characters the registry "
            "cannot address",
            context={"name": coordinate.name, "version": coordinate.version},
        )
    template.check()
    return FetchDescriptor(
        coordinate=coordinate,
        url=template.render(coordinate),
        expected_filename=coordinate.archive_filename,
        checksum=checksum,
    )


def synthesize_all(
    coordinates: Iterable[DependencyCoordinate],
    template: RegistryTemplate,
    checksums: Mapping[str, Checksum] | None = None,
) -> list[FetchDescriptor]:
    """Synthesize descriptors in input order.

    ``checksums`` is keyed by archive filename (``<name>-<version>.crate``),
    the way distribution manifests record them.
    """
    checksums = checksums or {}
    return [
        synthesize(c, template, checksums.get(c.archive_filename))
        for c in coordinates
    ]
