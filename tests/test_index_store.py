"""Tests for tracking index persistence."""

import json
import tempfile
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from md2html.errors import IndexCorruptError
from md2html.index_store import TrackingRecord, load_index, save_index


def test_missing_index_loads_empty_record(tmp_path):
    record = load_index(tmp_path / "_index")

    assert record.files == []
    assert record.revision == ""
    assert not record.has_revision


@given(
    files=st.lists(st.text(min_size=1, max_size=30), unique=True, max_size=20),
    revision=st.text(max_size=40),
)
def test_save_then_load_returns_same_record(files, revision):
    record = TrackingRecord(files=files, revision=revision)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "_index"
        save_index(path, record)
        assert load_index(path) == record


def test_persisted_format_uses_files_and_commit_keys(tmp_path):
    path = tmp_path / "_index"
    save_index(path, TrackingRecord(files=["a.md", "b.md"], revision="abc123"))

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "files": ["a.md", "b.md"],
        "__commit__": "abc123",
    }


def test_save_creates_parent_folders(tmp_path):
    path = tmp_path / "state" / "nested" / "_index"
    save_index(path, TrackingRecord(files=["a.md"]))

    assert path.is_file()
    assert load_index(path).files == ["a.md"]


def test_null_fields_load_as_empty(tmp_path):
    path = tmp_path / "_index"
    path.write_text('{"files": null, "__commit__": null}', encoding="utf-8")

    assert load_index(path) == TrackingRecord()


def test_duplicate_files_collapse_in_order(tmp_path):
    path = tmp_path / "_index"
    path.write_text('{"files": ["b.md", "a.md", "b.md"], "__commit__": "x"}', encoding="utf-8")

    assert load_index(path).files == ["b.md", "a.md"]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"files": "a.md"}',
        '{"files": [1, 2]}',
        '{"files": [], "__commit__": 7}',
    ],
)
def test_malformed_index_resets_to_empty(tmp_path, content):
    path = tmp_path / "_index"
    path.write_text(content, encoding="utf-8")

    assert load_index(path) == TrackingRecord()


def test_non_utf8_index_resets_to_empty(tmp_path):
    path = tmp_path / "_index"
    path.write_bytes(b"\xff\xfe\x00garbage")

    assert load_index(path) == TrackingRecord()


def test_malformed_index_raises_in_strict_mode(tmp_path):
    path = tmp_path / "_index"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(IndexCorruptError):
        load_index(path, strict=True)

    assert path.read_text(encoding="utf-8") == "{not json"


def test_record_add_keeps_first_seen_order():
    record = TrackingRecord()
    record.add("b.md")
    record.add("a.md")
    record.add("b.md")

    assert record.files == ["b.md", "a.md"]
    assert "a.md" in record
    assert "c.md" not in record


def test_undecodable_names_round_trip_as_escapes(tmp_path):
    path = tmp_path / "_index"
    record = TrackingRecord(files=["a.md", "caf\udce9.md"], revision="abc")

    save_index(path, record)

    assert b"\\udce9" in path.read_bytes()
    assert load_index(path) == record


def test_failed_save_keeps_previous_index(tmp_path, monkeypatch):
    path = tmp_path / "_index"
    save_index(path, TrackingRecord(files=["a.md"], revision="abc"))
    before = path.read_bytes()

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("md2html.index_store.os.replace", fail_replace)

    with pytest.raises(OSError, match="disk full"):
        save_index(path, TrackingRecord(files=["a.md", "b.md"], revision="def"))

    assert path.read_bytes() == before
    assert [p.name for p in tmp_path.iterdir()] == ["_index"]
