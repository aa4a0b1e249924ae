"""Coordinate parser — turns a CRATES block into ordered coordinates.

A token has the form ``<name>-<version>``.  Crate names may themselves
contain dashes, so the token is split on the dash that yields the longest
trailing substring that is a valid semver version and leaves a valid crate
name on its left::

    xattr-0.2.2                    -> xattr / 0.2.2
    some-lib-2-1.0.0               -> some-lib-2 / 1.0.0
    clap-clap32-clap-3.0.0-beta.2  -> clap-clap32-clap / 3.0.0-beta.2

Longest-suffix-wins means ``foo-1.0.0-1.0.0`` parses as ``foo`` at the
pre-release version ``1.0.0-1.0.0``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from cratevendor.core.errors import DuplicateCoordinate, MalformedCoordinate
from cratevendor.models.coordinates import DependencyCoordinate

logger = logging.getLogger(__name__)

# crates.io: ASCII alphanumerics, '-' and '_', leading letter, max 64 chars.
CRATE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{0,63}$")

_NUM = r"(?:0|[1-9][0-9]*)"
_PRE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
SEMVER = re.compile(
    rf"^{_NUM}\.{_NUM}\.{_NUM}"
    rf"(?:-{_PRE_IDENT}(?:\.{_PRE_IDENT})*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def is_valid_name(name: str) -> bool:
    return CRATE_NAME.match(name) is not None


def is_valid_version(version: str) -> bool:
    return SEMVER.match(version) is not None


def parse_coordinate(token: str) -> DependencyCoordinate:
    """Parse a single ``name-version`` token.

    Raises ``MalformedCoordinate`` when no split yields a valid name and a
    valid semver version.
    """
    token = token.strip()
    start = 0
    while True:
        dash = token.find("-", start)
        if dash == -1:
            break
        name, version = token[:dash], token[dash + 1 :]
        if is_valid_name(name) and is_valid_version(version):
            return DependencyCoordinate(name=name, version=version)
        start = dash + 1

    raise MalformedCoordinate(
        f"No valid version suffix in coordinate {token!r}",
        context={"coordinate": token},
    )


def parse_coordinates(text: str | Iterable[str]) -> list[DependencyCoordinate]:
    """Parse a whitespace-separated block (or iterable of tokens).

    Order is preserved.  Exact repeats collapse to their first occurrence;
    the same name pinned to two versions raises ``DuplicateCoordinate``.
    """
    tokens = text.split() if isinstance(text, str) else [
        t for chunk in text for t in chunk.split()
    ]

    seen: dict[str, DependencyCoordinate] = {}
    result: list[DependencyCoordinate] = []
    for token in tokens:
        coord = parse_coordinate(token)
        previous = seen.get(coord.name)
        if previous is None:
            seen[coord.name] = coord
            result.append(coord)
        elif previous.version != coord.version:
            raise DuplicateCoordinate(
                f"Crate {coord.name!r} pinned to both {previous.version} "
                f"and {coord.version}",
                context={
                    "name": coord.name,
                    "first": previous.token,
                    "second": coord.token,
                },
            )
        else:
            logger.debug("Ignoring repeated coordinate %s", coord.token)

    logger.debug("Parsed %d coordinates", len(result))
    return result


def serialize_coordinates(coords: Iterable[DependencyCoordinate]) -> str:
    """Canonical re-serialization: one ``name-version`` token per line."""
    return "\n".join(c.token for c in coords)
