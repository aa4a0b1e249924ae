"""Ebuild scanner — pulls the CRATES block out of a cargo-based ebuild.

The outer build descriptor declares its crates as a shell variable::

    CRATES="
    adler32-1.0.4
    arrayref-0.3.6
    xattr-0.2.2
    "

and hands it to the fetch helper via ``$(cargo_crate_uris ${CRATES})``.
The block may reference ``${P}``, ``${PN}`` and ``${PV}``, which are
substituted from the ebuild's own file name.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

CRATES_BLOCK = re.compile(r'\n *CRATES="(.*?)" *(#.*)?\n', re.DOTALL)
USES_CARGO_ECLASS = re.compile(r"\n[ \t]*inherit.*?cargo")
STANDARD_HELPER_CALLS = (
    "$(cargo_crate_uris ${CRATES})",
    "$(cargo_crate_uris $CRATES)",
)

# Loosely follows portage's package/version grammar.
EBUILD_FILENAME = re.compile(
    r"(?:^|/)(?P<pn>[\w+][\w+.-]*?(?P<pn_inval>-(-r(\d+))?)?)"
    r"-(?P<ver>(\d+)((\.\d+)*)([a-z]?)((_(pre|p|beta|alpha|rc)\d*)*))"
    r"(-r(?P<rev>\d+))?\.ebuild$"
)


class EbuildScan(BaseModel):
    """What the scanner found in one ebuild."""

    model_config = ConfigDict(frozen=True)

    path: str
    uses_cargo: bool
    standard_helper: bool
    crates: str | None = None


def split_pkgver(path: str) -> tuple[str, str] | None:
    """Return ``(PN, PV)`` parsed from an ebuild path, or ``None``."""
    match = EBUILD_FILENAME.search(path)
    if match is None:
        return None
    return match.group("pn"), match.group("ver")


def extract_crates(content: str, path: str = "") -> str | None:
    """Return the raw CRATES block with ``${P}``/``${PN}``/``${PV}`` expanded."""
    match = CRATES_BLOCK.search(content)
    if match is None:
        return None
    crates = match.group(1)
    pkgver = split_pkgver(path) if path else None
    if pkgver is None:
        if path:
            logger.warning("%s: cannot derive PN/PV from file name", path)
        return crates
    pn, pv = pkgver
    return (
        crates.replace("${P}", f"{pn}-{pv}")
        .replace("${PV}", pv)
        .replace("${PN}", pn)
    )


def scan_ebuild(content: str, path: str | Path = "") -> EbuildScan:
    """Inspect an ebuild's text for cargo usage and its CRATES block."""
    path = str(path)
    uses_cargo = "cargo_crate_uris" in content or bool(USES_CARGO_ECLASS.search(content))
    standard = any(call in content for call in STANDARD_HELPER_CALLS)
    if uses_cargo and not standard and "cargo_crate_uris" in content:
        logger.warning("%s: non-standard usage of cargo_crate_uris", path)

    crates = extract_crates(content, path) if uses_cargo else None
    if uses_cargo and crates is None:
        logger.warning("%s: could not find a CRATES declaration", path)
    return EbuildScan(
        path=path,
        uses_cargo=uses_cargo,
        standard_helper=standard,
        crates=crates,
    )
