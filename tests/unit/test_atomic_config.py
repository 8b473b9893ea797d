#!/usr/bin/env python3
"""
Unit tests for atomic config writes and forgiving reads.

Ensures a crash or failure mid-write never leaves a truncated storage.json
and never leaks temp files.
"""

import json
from unittest.mock import patch

import pytest

from mediadrive.config import read_config, write_config_atomic


class TestWriteConfigAtomic:
    """Tests for write_config_atomic."""

    def test_writes_json_with_trailing_newline(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"1": {"DisplayName": "Photos"}})
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"1": {"DisplayName": "Photos"}}

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / ".mediadrive" / "storage.json"
        write_config_atomic(path, {})
        assert path.exists()

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"a": 1})
        write_config_atomic(path, {"a": 2})
        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]

    def test_non_ascii_preserved(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"1": {"DisplayName": "Fotos Süd"}})
        assert "Fotos Süd" in path.read_text(encoding="utf-8")

    def test_failed_replace_keeps_original(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"version": "old"})

        with patch("mediadrive.config.os.replace", side_effect=OSError("locked")):
            with pytest.raises(OSError):
                write_config_atomic(path, {"version": "new"})

        assert json.loads(path.read_text(encoding="utf-8")) == {"version": "old"}
        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]

    def test_unserializable_config_keeps_original(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"version": "old"})

        with pytest.raises(TypeError):
            write_config_atomic(path, {"bad": object()})

        assert json.loads(path.read_text(encoding="utf-8")) == {"version": "old"}
        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]


class TestReadConfig:
    """Tests for read_config."""

    def test_missing(self, tmp_path):
        assert read_config(tmp_path / "absent.json") == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2", encoding="utf-8")
        assert read_config(path) == {}

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert read_config(path) == {}

    def test_round_trip(self, tmp_path):
        path = tmp_path / "storage.json"
        write_config_atomic(path, {"1": {"DisplayName": "Photos"}})
        assert read_config(path) == {"1": {"DisplayName": "Photos"}}
