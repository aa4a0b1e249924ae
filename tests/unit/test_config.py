"""Tests for VendorSettings — env-driven settings."""

from __future__ import annotations

from pathlib import Path

from cratevendor.config import VendorSettings
from cratevendor.core.uri_synthesizer import CRATES_IO_TEMPLATE


class TestVendorSettings:
    def test_defaults(self):
        settings = VendorSettings()
        assert settings.registry_template == CRATES_IO_TEMPLATE
        assert settings.log_level == "INFO"
        assert settings.max_workers == 4
        assert settings.require_checksums is False

    def test_default_paths(self):
        settings = VendorSettings()
        assert settings.vendor_root == Path("vendor")
        assert settings.distdir == Path("distfiles")
        assert settings.config_path is None
        assert settings.index_dir is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CRATEVENDOR_REQUIRE_CHECKSUMS", "true")
        monkeypatch.setenv("CRATEVENDOR_MAX_WORKERS", "16")
        monkeypatch.setenv("CRATEVENDOR_VENDOR_ROOT", "/tmp/v")
        settings = VendorSettings()
        assert settings.require_checksums is True
        assert settings.max_workers == 16
        assert settings.vendor_root == Path("/tmp/v")
