"""Tests for pkgbuild_sync.state."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkgbuild_sync.errors import StateCorrupt
from pkgbuild_sync.models import VersionRecord
from pkgbuild_sync.state import load_state, save_state


class TestLoadState:
    def test_missing_file_is_empty_record(self, tmp_path: Path) -> None:
        record = load_state(tmp_path)
        assert record == VersionRecord()
        assert record.tag == ""
        assert record.pkgver is None

    def test_empty_object(self, tmp_path: Path) -> None:
        (tmp_path / ".index.json").write_text("{}")
        assert load_state(tmp_path) == VersionRecord()

    def test_reads_record(self, package_dir: Path) -> None:
        assert load_state(package_dir) == VersionRecord(tag="1.1.0", pkgver="1.1.0")

    def test_ignores_legacy_counter(self, tmp_path: Path) -> None:
        (tmp_path / ".index.json").write_text('{"i": 0, "tag": "v0.3.1"}')
        assert load_state(tmp_path) == VersionRecord(tag="v0.3.1")

    @pytest.mark.parametrize("content", ["", "{", "[]", '{"tag": 5}'])
    def test_corrupt(self, tmp_path: Path, content: str) -> None:
        (tmp_path / ".index.json").write_text(content)
        with pytest.raises(StateCorrupt, match="failed to parse"):
            load_state(tmp_path)

    def test_undecodable_bytes(self, tmp_path: Path) -> None:
        (tmp_path / ".index.json").write_bytes(b"\xff\xfe")
        with pytest.raises(StateCorrupt, match="failed to open"):
            load_state(tmp_path)


class TestSaveState:
    def test_writes_json(self, tmp_path: Path) -> None:
        save_state(tmp_path, VersionRecord(tag="1.2.0", pkgver="1.2.0"))
        data = json.loads((tmp_path / ".index.json").read_text())
        assert data == {"tag": "1.2.0", "pkgver": "1.2.0"}

    def test_overwrites_and_leaves_no_temp_files(self, package_dir: Path) -> None:
        save_state(package_dir, VersionRecord(tag="2.0.0"))
        assert load_state(package_dir) == VersionRecord(tag="2.0.0")
        assert sorted(p.name for p in package_dir.glob(".index.json*")) == [".index.json"]

    def test_round_trips_through_load(self, tmp_path: Path) -> None:
        record = VersionRecord(tag="v3.1", pkgver="3.1")
        save_state(tmp_path, record)
        assert load_state(tmp_path) == record
