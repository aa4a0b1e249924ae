"""Vendor tree assembler — unpacks verified archives into the vendor tree.

Layout::

    <vendor_root>/
        .cargo/config.toml           — redirect config (default location)
        <name>-<version>/            — one entry per coordinate
            Cargo.toml
            .cargo-checksum.json
            ...

Every entry is staged in a hidden sibling ``.<name>-<version>.tmp-*``
directory and renamed into place only once complete, so the build tool
never sees a half-written entry.  Hidden leftovers from an interrupted pass
are swept at the start of the next one.  The redirect config is written
last, after every entry of the pass is in place.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tarfile
import tempfile
import zlib
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path, PurePosixPath

import tomli_w

from cratevendor.core.errors import (
    CollisionError,
    IntegrityMismatch,
    UnpackError,
    VendorError,
)
from cratevendor.core.hasher import canonical_json_bytes, sha256_hex
from cratevendor.models.fetch import VerifiedArchive
from cratevendor.models.vendor import RedirectConfig, VendorEntry, VendorTree

logger = logging.getLogger(__name__)

CHECKSUM_FILE = ".cargo-checksum.json"
CONFIG_HEADER = "# Generated by cratevendor; regenerated in full on every pass.\n"

# Fixed timestamp applied to every unpacked path (2000-01-01T00:00:00Z).
NORMALIZED_MTIME = 946684800
_STAGING_MARKERS = (".tmp-", ".old-")


def _is_staging_dir(name: str) -> bool:
    return name.startswith(".") and any(m in name for m in _STAGING_MARKERS)


class VendorTreeAssembler:
    """Assembles a vendor tree from verified archives.

    Parameters
    ----------
    vendor_root:
        Directory holding one subdirectory per ``(name, version)``.
    config_path:
        Where the redirect config is written.  Defaults to
        ``<vendor_root>/.cargo/config.toml``.
    max_workers:
        Upper bound on archives unpacked concurrently.
    """

    def __init__(
        self,
        vendor_root: Path,
        *,
        config_path: Path | None = None,
        max_workers: int = 4,
    ) -> None:
        self._root = Path(vendor_root).absolute()
        self._config_path = (
            Path(config_path).absolute()
            if config_path
            else self._root / ".cargo" / "config.toml"
        )
        self._max_workers = max(1, max_workers)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self._config_path

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------

    def assemble(self, archives: Sequence[VerifiedArchive]) -> VendorTree:
        """Place every archive, then regenerate the redirect config.

        Entries placed before a failure stay in place, but the redirect config
        is left untouched and the first error (in input order) is raised.
        """
        archives = self._check_collisions(archives)
        self._root.mkdir(parents=True, exist_ok=True)
        self.sweep_staging()

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [pool.submit(self.place_entry, a) for a in archives]
            wait(futures)

        entries: list[VendorEntry] = []
        errors: list[VendorError] = []
        for archive, future in zip(archives, futures):
            exc = future.exception()
            if exc is None:
                entries.append(future.result())
            elif isinstance(exc, VendorError):
                errors.append(exc)
            else:
                errors.append(
                    UnpackError(
                        f"Failed to place {archive.descriptor.coordinate}: {exc}",
                        context={
                            "coordinate": archive.descriptor.coordinate.token,
                            "path": archive.local_path,
                        },
                    )
                )
        if errors:
            logger.error(
                "%d of %d entries failed; redirect config not regenerated",
                len(errors),
                len(archives),
            )
            raise errors[0]

        config = RedirectConfig(vendor_root=self._root, entries=entries)
        self.write_config(config)
        self.prune({e.dirname for e in entries})
        logger.info("Vendor tree at %s holds %d entries", self._root, len(entries))
        return VendorTree(root=self._root, entries=entries, config_path=self._config_path)

    def _check_collisions(
        self, archives: Sequence[VerifiedArchive]
    ) -> list[VerifiedArchive]:
        targets: dict[str, VerifiedArchive] = {}
        unique: list[VerifiedArchive] = []
        for archive in archives:
            dirname = archive.descriptor.coordinate.token
            existing = targets.get(dirname)
            if existing is None:
                targets[dirname] = archive
                unique.append(archive)
            elif existing != archive:
                raise CollisionError(
                    f"Two archives claim vendor entry {dirname}",
                    context={
                        "entry": dirname,
                        "first": existing.local_path,
                        "second": archive.local_path,
                    },
                )
        return unique

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def place_entry(self, archive: VerifiedArchive) -> VendorEntry:
        """Unpack one archive into a staging dir and swap it into place."""
        coord = archive.descriptor.coordinate
        dirname = coord.token
        target = self._root / dirname
        ctx = {"coordinate": dirname, "path": archive.local_path}

        try:
            data = Path(archive.local_path).read_bytes()
        except OSError as exc:
            raise UnpackError(f"Cannot read archive for {dirname}: {exc}", context=ctx) from exc
        if sha256_hex(data) != archive.sha256:
            raise IntegrityMismatch(
                f"Archive for {dirname} changed on disk after verification",
                context=ctx,
            )

        staging = Path(tempfile.mkdtemp(prefix=f".{dirname}.tmp-", dir=self._root))
        try:
            self._unpack(data, staging, dirname, ctx)
            staged = staging / dirname
            self._write_checksum_file(staged, archive.sha256)
            _normalize_tree(staged)
            self._swap_in(staged, target)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.debug("Placed %s", target)
        return VendorEntry(
            name=coord.name,
            version=coord.version,
            path=target,
            verified=archive.verified,
        )

    def _unpack(self, data: bytes, staging: Path, dirname: str, ctx: dict) -> None:
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
                for member in tar.getmembers():
                    self._extract_member(tar, member, staging, dirname, ctx)
        except (tarfile.TarError, EOFError, zlib.error) as exc:
            raise UnpackError(f"Cannot unpack {dirname}: {exc}", context=ctx) from exc

        if not (staging / dirname).is_dir():
            raise UnpackError(
                f"Archive for {dirname} has no top-level {dirname}/ directory",
                context=ctx,
            )
        _check_links(staging / dirname, ctx)

    @staticmethod
    def _extract_member(
        tar: tarfile.TarFile,
        member: tarfile.TarInfo,
        staging: Path,
        dirname: str,
        ctx: dict,
    ) -> None:
        rel = PurePosixPath(member.name)
        member_ctx = {**ctx, "member": member.name}
        if (
            rel.is_absolute()
            or ".." in rel.parts
            or not rel.parts
            or rel.parts[0] != dirname
        ):
            raise UnpackError(
                f"Archive member {member.name!r} escapes {dirname}/",
                context=member_ctx,
            )
        entry = staging / dirname
        dest = staging.joinpath(*rel.parts)

        # Earlier members may be symlinks; resolve what is on disk now.
        if len(rel.parts) > 1 and not _inside(dest.parent, entry):
            raise UnpackError(
                f"Archive member {member.name!r} is written through a link "
                f"leaving {dirname}/",
                context=member_ctx,
            )
        if dest.is_symlink() and not member.isdir():
            dest.unlink()

        if member.isdir():
            if not _inside(dest, entry):
                raise UnpackError(
                    f"Directory {member.name!r} resolves outside {dirname}/",
                    context=member_ctx,
                )
            dest.mkdir(parents=True, exist_ok=True)
        elif member.isfile():
            dest.parent.mkdir(parents=True, exist_ok=True)
            source = tar.extractfile(member)
            if source is None:
                raise UnpackError(f"Cannot read member {member.name!r}", context=member_ctx)
            with source, open(dest, "wb") as fh:
                shutil.copyfileobj(source, fh)
            mode = 0o755 if member.mode & 0o111 else 0o644
            os.chmod(dest, mode)
        elif member.issym():
            link = PurePosixPath(member.linkname)
            resolved = PurePosixPath(*rel.parts[:-1]) / link
            if (
                link.is_absolute()
                or _escapes(resolved)
                or not _inside(dest.parent / member.linkname, entry)
            ):
                raise UnpackError(
                    f"Symlink {member.name!r} points outside {dirname}/",
                    context=member_ctx,
                )
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.symlink(member.linkname, dest)
        else:
            raise UnpackError(
                f"Unsupported member type for {member.name!r}",
                context={**ctx, "member": member.name},
            )

    @staticmethod
    def _write_checksum_file(entry_dir: Path, package_sha256: str) -> None:
        files: dict[str, str] = {}
        for path in sorted(entry_dir.rglob("*")):
            if path.is_file() and not path.is_symlink():
                rel = path.relative_to(entry_dir).as_posix()
                files[rel] = sha256_hex(path.read_bytes())
        payload = {"files": files, "package": package_sha256}
        (entry_dir / CHECKSUM_FILE).write_bytes(canonical_json_bytes(payload))

    def _swap_in(self, staged: Path, target: Path) -> None:
        """Rename ``staged`` to ``target``, replacing any previous entry."""
        if target.exists() or target.is_symlink():
            retired = Path(
                tempfile.mkdtemp(prefix=f".{target.name}.old-", dir=self._root)
            )
            os.replace(target, retired / target.name)
            try:
                os.replace(staged, target)
            except OSError:
                os.replace(retired / target.name, target)
                shutil.rmtree(retired, ignore_errors=True)
                raise
            shutil.rmtree(retired, ignore_errors=True)
        else:
            os.replace(staged, target)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def sweep_staging(self) -> list[Path]:
        """Remove staging leftovers from an interrupted pass.

        A retired ``.<entry>.old-*`` copy whose entry is missing was caught
        between the two renames of a swap; it is moved back into place
        instead of being deleted.
        """
        removed: list[Path] = []
        if not self._root.is_dir():
            return removed
        for path in sorted(self._root.iterdir()):
            if not (path.is_dir() and _is_staging_dir(path.name)):
                continue
            if ".old-" in path.name:
                name = path.name[1:].rpartition(".old-")[0]
                retired = path / name
                target = self._root / name
                if retired.is_dir() and not (target.exists() or target.is_symlink()):
                    logger.warning("Restoring interrupted swap of %s", name)
                    os.replace(retired, target)
            logger.warning("Removing stale staging directory %s", path)
            shutil.rmtree(path)
            removed.append(path)
        return removed

    def prune(self, keep: set[str]) -> list[Path]:
        """Remove entry directories not part of the current pass.

        Directories holding the redirect config are never pruned.
        """
        removed: list[Path] = []
        protected = set(self._config_path.parents)
        for path in sorted(self._root.iterdir()):
            if path.name.startswith(".") or not path.is_dir():
                continue
            if path in protected:
                continue
            if path.name not in keep:
                logger.info("Removing stale vendor entry %s", path.name)
                shutil.rmtree(path)
                removed.append(path)
        return removed

    def write_config(self, config: RedirectConfig) -> Path:
        """Atomically (re)write the redirect config."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        text = CONFIG_HEADER + tomli_w.dumps(config.to_document())
        tmp = self._config_path.with_name(self._config_path.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self._config_path)
        logger.debug("Wrote redirect config %s", self._config_path)
        return self._config_path


def _inside(path: Path, root: Path) -> bool:
    """True if ``path`` resolves (following links on disk) within ``root``."""
    real = os.path.realpath(path)
    base = os.path.realpath(root)
    return real == base or real.startswith(base + os.sep)


def _check_links(entry: Path, ctx: dict) -> None:
    """Reject links that leave ``entry`` once every member is on disk."""
    for dirpath, dirnames, filenames in os.walk(entry):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            if path.is_symlink() and not _inside(path, entry):
                member = f"{entry.name}/{path.relative_to(entry).as_posix()}"
                raise UnpackError(
                    f"Symlink {member!r} points outside {entry.name}/",
                    context={**ctx, "member": member},
                )


def _escapes(path: PurePosixPath) -> bool:
    depth = 0
    for part in path.parts:
        if part == "..":
            depth -= 1
        elif part not in ("", "."):
            depth += 1
        if depth < 1:
            return True
    return False


def _normalize_tree(root: Path) -> None:
    """Pin mtimes (and directory modes) so repeated passes are identical."""
    for dirpath, dirnames, filenames in os.walk(root, topdown=False):
        for name in filenames:
            path = Path(dirpath) / name
            if not path.is_symlink():
                os.utime(path, (NORMALIZED_MTIME, NORMALIZED_MTIME))
        for name in dirnames:
            path = Path(dirpath) / name
            if not path.is_symlink():
                os.chmod(path, 0o755)
                os.utime(path, (NORMALIZED_MTIME, NORMALIZED_MTIME))
    os.chmod(root, 0o755)
    os.utime(root, (NORMALIZED_MTIME, NORMALIZED_MTIME))
