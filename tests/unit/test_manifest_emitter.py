"""Tests for the manifest emitter — merge, dedupe, cross-block conflicts."""

from __future__ import annotations

import pytest

from cratevendor.core.coordinate_parser import parse_coordinates
from cratevendor.core.errors import DuplicateCoordinate
from cratevendor.core.manifest_emitter import emit_manifest
from cratevendor.core.uri_synthesizer import RegistryTemplate, synthesize_all


def _group(text: str, template: RegistryTemplate):
    return synthesize_all(parse_coordinates(text), template)


class TestEmitManifest:
    def test_single_group(self, template):
        manifest = emit_manifest(_group("adler32-1.0.4 xattr-0.2.2", template))
        assert [d.expected_filename for d in manifest.descriptors] == [
            "adler32-1.0.4.crate",
            "xattr-0.2.2.crate",
        ]

    def test_dedupes_by_url_first_seen(self, template):
        manifest = emit_manifest(
            _group("xattr-0.2.2 adler32-1.0.4", template),
            _group("arrayref-0.3.6 xattr-0.2.2", template),
        )
        assert [d.coordinate.token for d in manifest.descriptors] == [
            "xattr-0.2.2",
            "adler32-1.0.4",
            "arrayref-0.3.6",
        ]

    def test_conflicting_versions_across_groups(self, template):
        with pytest.raises(DuplicateCoordinate) as excinfo:
            emit_manifest(
                _group("syn-1.0.109", template),
                _group("syn-2.0.0", template),
            )
        assert excinfo.value.context["name"] == "syn"

    def test_empty(self):
        assert len(emit_manifest()) == 0

    def test_fetch_list(self, template):
        manifest = emit_manifest(_group("adler32-1.0.4", template))
        assert manifest.to_fetch_list() == [
            {
                "url": "https://crates.io/api/v1/crates/adler32/1.0.4/download",
                "expected_filename": "adler32-1.0.4.crate",
            }
        ]

    def test_src_uri(self, template):
        manifest = emit_manifest(_group("adler32-1.0.4 xattr-0.2.2", template))
        assert manifest.to_src_uri().splitlines() == [
            "https://crates.io/api/v1/crates/adler32/1.0.4/download -> adler32-1.0.4.crate",
            "https://crates.io/api/v1/crates/xattr/0.2.2/download -> xattr-0.2.2.crate",
        ]
