"""Shared test fixtures for cratevendor."""

from __future__ import annotations

import gzip
import io
import json
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest

from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.resolver import VendorResolver
from cratevendor.core.uri_synthesizer import RegistryTemplate
from cratevendor.core.vendor_assembler import VendorTreeAssembler
from cratevendor.sources.distdir import DistdirSource

EXAMPLE_CRATES = "\nadler32-1.0.4\narrayref-0.3.6\nxattr-0.2.2\n"


def build_crate(
    name: str,
    version: str,
    files: dict[str, bytes] | None = None,
    *,
    prefix: str | None = None,
) -> bytes:
    """Build a deterministic ``.crate`` (gzip tarball) in memory.

    ``files`` maps paths relative to the crate's top directory to contents.
    ``prefix`` overrides the top directory name.
    """
    top = prefix if prefix is not None else f"{name}-{version}"
    files = files or {
        "Cargo.toml": f'[package]\nname = "{name}"\nversion = "{version}"\n'.encode(),
        "src/lib.rs": f"// {name}\n".encode(),
    }
    raw = io.BytesIO()
    with tarfile.open(fileobj=raw, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for rel, content in sorted(files.items()):
            info = tarfile.TarInfo(f"{top}/{rel}" if top else rel)
            info.size = len(content)
            info.mtime = 0
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    out = io.BytesIO()
    with gzip.GzipFile(fileobj=out, mode="wb", mtime=0) as gz:
        gz.write(raw.getvalue())
    return out.getvalue()


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def make_crate() -> Callable[..., bytes]:
    """Factory fixture: build a crate archive with sensible defaults."""
    return build_crate


@pytest.fixture
def template() -> RegistryTemplate:
    """Provide the default crates.io registry template."""
    return RegistryTemplate()


@pytest.fixture
def distdir(tmp_dir: Path) -> Path:
    """A distfiles directory pre-populated with the example crates."""
    path = tmp_dir / "distfiles"
    path.mkdir()
    for coord in parse_coordinates(EXAMPLE_CRATES):
        (path / coord.archive_filename).write_bytes(
            build_crate(coord.name, coord.version)
        )
    return path


@pytest.fixture
def source(distdir: Path) -> DistdirSource:
    return DistdirSource(distdir)


@pytest.fixture
def vendor_root(tmp_dir: Path) -> Path:
    return tmp_dir / "vendor"


@pytest.fixture
def assembler(vendor_root: Path) -> VendorTreeAssembler:
    """Provide a VendorTreeAssembler rooted in a temp directory."""
    return VendorTreeAssembler(vendor_root, max_workers=2)


@pytest.fixture
def resolver(template: RegistryTemplate, vendor_root: Path) -> VendorResolver:
    """Provide a VendorResolver wired to the default template and temp tree."""
    return VendorResolver(template, vendor_root, max_workers=2)


@pytest.fixture
def crate_index(tmp_dir: Path) -> Path:
    """A minimal crates.io index checkout; ``arrayref 0.3.6`` is yanked."""
    root = tmp_dir / "crates.io-index"
    records = {
        "ad/le/adler32": [("adler32", "1.0.3", False), ("adler32", "1.0.4", False)],
        "ar/ra/arrayref": [("arrayref", "0.3.5", False), ("arrayref", "0.3.6", True)],
        "xa/tt/xattr": [("xattr", "0.2.2", False)],
    }
    for rel, lines in records.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "".join(
                json.dumps({"name": n, "vers": v, "deps": [], "cksum": "00", "yanked": y})
                + "\n"
                for n, v, y in lines
            ),
            encoding="utf-8",
        )
    (root / "config.json").write_text('{"dl": "https://crates.io/api/v1/crates"}\n', encoding="utf-8")
    return root
