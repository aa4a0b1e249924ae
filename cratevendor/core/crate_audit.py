"""Crate audit — flag pinned coordinates that the registry has yanked.

Reads a local checkout of the crates.io index (one file per crate at
``<prefix>/<name>``, one JSON object per line with at least ``name``,
``vers`` and ``yanked``).  Nothing is fetched; keeping the checkout fresh
is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from cratevendor.core.errors import IndexUnavailable
from cratevendor.core.uri_synthesizer import index_prefix
from cratevendor.models.coordinates import DependencyCoordinate

logger = logging.getLogger(__name__)


class RegistryRecord(BaseModel):
    """One line of a crates.io index file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    vers: str
    yanked: bool = False


class PinState(str, Enum):
    """Registry state of a pinned version."""

    YANKED = "yanked"
    UNKNOWN = "unknown"  # crate or version absent from the index
    OK = "ok"

    @property
    def priority(self) -> int:
        return {"yanked": 2, "unknown": 1, "ok": 0}[self.value]


class CrateStatus(BaseModel):
    """Audit result for one pinned coordinate."""

    model_config = ConfigDict(frozen=True)

    coordinate: DependencyCoordinate
    state: PinState
    yanked: bool | None = None

    def to_dict(self) -> dict:
        return {
            "crate": self.coordinate.token,
            "name": self.coordinate.name,
            "version": self.coordinate.version,
            "state": self.state.value,
            "yanked": self.yanked,
        }


class CrateIndex:
    """Read-only view over a local crates.io index checkout.

    Parameters
    ----------
    root:
        Index checkout directory (the one holding ``config.json``).
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        if not self._root.is_dir():
            raise IndexUnavailable(
                f"Crate index not found at {self._root}",
                context={"path": self._root},
            )
        self._cache: dict[str, dict[str, bool]] = {}

    @property
    def root(self) -> Path:
        return self._root

    def index_path(self, name: str) -> Path:
        lowered = name.lower()
        return self._root / index_prefix(lowered) / lowered

    def versions(self, name: str) -> dict[str, bool]:
        """Map every published version of ``name`` to its yanked flag.

        Unparseable lines are logged and skipped.
        """
        lowered = name.lower()
        if lowered in self._cache:
            return self._cache[lowered]

        path = self.index_path(lowered)
        found: dict[str, bool] = {}
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No index file for %s at %s", name, path)
            text = ""
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = RegistryRecord.model_validate_json(line)
            except ValidationError as exc:
                logger.error(
                    "Cannot parse crate info for %s:%d: %s",
                    path,
                    lineno,
                    exc.errors()[0]["msg"],
                )
                continue
            found[record.vers] = record.yanked

        self._cache[lowered] = found
        return found

    def status(self, coordinate: DependencyCoordinate) -> CrateStatus:
        yanked = self.versions(coordinate.name).get(coordinate.version)
        if yanked is None:
            state = PinState.UNKNOWN
        elif yanked:
            state = PinState.YANKED
        else:
            state = PinState.OK
        return CrateStatus(coordinate=coordinate, state=state, yanked=yanked)


def audit(
    coordinates: Iterable[DependencyCoordinate], index: CrateIndex
) -> list[CrateStatus]:
    """Return one status per coordinate, most urgent first.

    Yanked pins sort before pins the index does not know, which sort
    before healthy ones; ties keep input order.
    """
    statuses = [index.status(c) for c in coordinates]
    statuses.sort(key=lambda s: -s.state.priority)
    yanked = sum(1 for s in statuses if s.state is PinState.YANKED)
    if yanked:
        logger.warning("%d of %d pinned crates are yanked", yanked, len(statuses))
    return statuses
