"""Runtime configuration — env-driven via pydantic-settings.

Reads ``CRATEVENDOR_*`` environment variables and an optional ``.env`` file.
The resolver itself never reads this; the CLI builds one and passes the
values in explicitly.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from cratevendor.core.uri_synthesizer import CRATES_IO_TEMPLATE


class VendorSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CRATEVENDOR_REGISTRY_TEMPLATE=https://mirror.example/{name}/{name}-{version}.crate
        export CRATEVENDOR_DISTDIR=/var/cache/distfiles
        export CRATEVENDOR_REQUIRE_CHECKSUMS=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CRATEVENDOR_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"

    # Registry
    registry_template: str = CRATES_IO_TEMPLATE

    # Storage paths
    vendor_root: Path = Path("vendor")
    config_path: Path | None = None  # default: <vendor_root>/.cargo/config.toml
    distdir: Path = Path("distfiles")
    index_dir: Path | None = None  # local crates.io index checkout, for audit

    # Verification and concurrency
    require_checksums: bool = False
    max_workers: int = 4
