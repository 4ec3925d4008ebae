from __future__ import annotations

import logging

import pytest

from pygsfs import (
    AlreadyExists,
    BucketAttributes,
    CopyTimeout,
    DirectoryNotEmpty,
    GsConfig,
    InvalidPath,
    IOFailure,
    MoveIncomplete,
    NotFound,
    UnsupportedMode,
)
from pygsfs.errors import StoreError


def op_names(store, name):
    return [op for op in store.ops if op.name == name]


def test_directory_lifecycle(fs, store):
    store.create("b", "dir/")
    assert fs.exists("/b/dir")

    store.create("b", "dir/file.txt", b"hi")
    entries = fs.ls("/b/dir/", detail=True)
    assert [e.name for e in entries] == ["file.txt"]
    assert entries[0].stat().size == 2

    with pytest.raises(DirectoryNotEmpty):
        fs.delete("/b/dir")
    assert store.keys("b") == ["dir/", "dir/file.txt"]

    fs.delete("/b/dir/file.txt")
    fs.delete("/b/dir")
    assert not fs.exists("/b/dir")
    assert store.keys("b") == []


def test_delete_missing_raises_not_found(fs, store):
    with pytest.raises(NotFound):
        fs.delete("/b/nope.txt")
    assert not op_names(store, "delete")


def test_delete_non_empty_synthetic_directory(fs, store):
    store.create("b", "a/b/c.txt", b"x")
    with pytest.raises(DirectoryNotEmpty):
        fs.delete("/b/a")
    assert not op_names(store, "delete")
    assert store.keys("b") == ["a/b/c.txt"]


def test_delete_prefers_file_over_marker(fs, store):
    store.create("b", "x", b"file")
    store.create("b", "x/")
    fs.delete("/b/x")
    assert store.keys("b") == ["x/"]
    fs.delete("/b/x/")
    assert store.keys("b") == []


def test_delete_relative_or_global_root_is_invalid(fs, registry):
    with pytest.raises(InvalidPath):
        fs.operations.delete(registry.get_path("gs:///"))
    with pytest.raises(InvalidPath):
        fs.operations.delete(fs.get_path("rel.txt"))


def test_delete_bucket(fs, store, registry):
    store.create("b", "k", b"")
    with pytest.raises(DirectoryNotEmpty):
        fs.delete("/b")
    fs.delete("/b/k")
    fs.delete("/b")
    assert store.get_bucket("b") is None
    with pytest.raises(NotFound):
        registry.get_file_system("gone").delete("/gone")


def test_create_bucket_uses_configured_location(store, registry):
    fs = registry.new_file_system("fresh", config=GsConfig(location="EU", storage_class="NEARLINE"))
    created = fs.create_directory("/fresh")
    assert created == fs.root
    attrs = fs.read_attributes("/fresh")
    assert isinstance(attrs, BucketAttributes)
    assert attrs.location == "EU"
    assert attrs.storage_class == "NEARLINE"
    assert attrs.is_directory


def test_create_directory_writes_marker(fs, store):
    d = fs.create_directory("/b/data")
    assert d.is_directory
    assert str(d) == "/b/data"
    assert store.keys("b") == ["data/"]
    assert fs.is_dir("/b/data")


def test_read_attributes_per_kind(fs, store, registry):
    store.create("b", "f.txt", b"12345")
    store.create("b", "marker/")
    store.create("b", "implied/child", b"")

    root = fs.read_attributes(registry.get_path("gs:///"))
    assert root.is_directory and root.size == 0

    f = fs.read_attributes("/b/f.txt")
    assert f.is_regular_file
    assert f.size == 5
    assert f.file_key == "/b/f.txt"
    assert f.last_modified_time is not None

    marker = fs.read_attributes("/b/marker")
    assert marker.is_directory
    assert marker.creation_time is not None

    implied = fs.read_attributes("/b/implied")
    assert implied.is_directory
    assert implied.creation_time is None
    assert implied.file_key == "/b/implied"

    with pytest.raises(NotFound):
        fs.read_attributes("/b/missing")


def test_read_attributes_returns_cached_snapshot(fs, store):
    store.create("b", "f.txt", b"1")
    entry = fs.ls(detail=True)[0]
    snapshot = entry.take_attributes()
    store.ops.clear()
    assert fs.read_attributes(entry.path, snapshot) is snapshot
    assert store.ops == []


def test_read_attributes_wraps_store_errors(fs, store, monkeypatch):
    def broken(bucket, key):
        raise StoreError("boom")

    monkeypatch.setattr(store, "get", broken)
    with pytest.raises(IOFailure):
        fs.read_attributes("/b/any")
    assert fs.exists("/b/any") is False


def test_check_access(fs, store):
    store.create("b", "f", b"")
    fs.check_access("/b/f")
    with pytest.raises(NotFound):
        fs.check_access("/b/g")
    with pytest.raises(UnsupportedMode):
        fs.check_access("/b/f", "WRITE")


def test_copy(fs, store):
    store.create("b", "src.bin", b"0123456789")
    fs.cp("/b/src.bin", "/b/dst.bin")
    assert store.read("b", "dst.bin") == b"0123456789"
    copies = op_names(store, "copy")
    assert len(copies) == 1


def test_copy_existing_target(fs, store):
    store.create("b", "src", b"new")
    store.create("b", "dst", b"old")
    with pytest.raises(AlreadyExists):
        fs.cp("/b/src", "/b/dst")
    assert store.read("b", "dst") == b"old"

    fs.cp("/b/src", "/b/dst", overwrite=True)
    assert store.read("b", "dst") == b"new"


def test_copy_onto_itself_is_a_no_op(fs, store):
    store.create("b", "same", b"x")
    store.ops.clear()
    fs.cp("/b/same", "/b/same")
    assert not op_names(store, "copy")


def test_copy_missing_source(fs):
    with pytest.raises(NotFound):
        fs.cp("/b/missing", "/b/target")


def test_copy_across_buckets(fs, store, registry):
    store.create_bucket("other")
    store.create("b", "f", b"payload")
    fs.cp("/b/f", "/other/g")
    assert store.read("other", "g") == b"payload"
    assert registry.get_file_system("other").exists("/other/g")


def test_copy_gives_up_after_max_chunks(store, registry):
    store.create_bucket("slow")
    fs = registry.new_file_system("slow", config=GsConfig(copy_max_chunks=2))
    store.create("slow", "big", b"x" * 20)
    with pytest.raises(CopyTimeout):
        fs.cp("/slow/big", "/slow/copy")
    assert store.keys("slow") == ["big"]


def test_move(fs, store):
    store.create("b", "a.txt", b"data")
    fs.mv("/b/a.txt", "/b/moved/a.txt")
    assert store.keys("b") == ["moved/a.txt"]
    assert fs.read_bytes("/b/moved/a.txt") == b"data"


def test_move_keeps_both_when_source_delete_fails(fs, store, monkeypatch):
    store.create("b", "a.txt", b"data")

    def failing_delete(bucket, key):
        raise StoreError("permission denied")

    monkeypatch.setattr(store, "delete", failing_delete)
    with pytest.raises(MoveIncomplete):
        fs.mv("/b/a.txt", "/b/b.txt")
    assert store.keys("b") == ["a.txt", "b.txt"]


def test_delete_finds_object_missing_from_lagging_listing(fs, store, monkeypatch):
    store.create("b", "fresh.txt", b"x")
    monkeypatch.setattr(store, "list", lambda bucket, prefix="", current_directory=False: iter([]))
    fs.delete("/b/fresh.txt")
    assert store.keys("b") == []


def test_delete_with_lagging_listing_and_no_object(fs, store, monkeypatch):
    monkeypatch.setattr(store, "list", lambda bucket, prefix="", current_directory=False: iter([]))
    with pytest.raises(NotFound):
        fs.delete("/b/ghost.txt")
    assert [op.args for op in op_names(store, "get")] == [("b", "ghost.txt")]
    assert not op_names(store, "delete")


def test_copy_warns_when_target_cannot_be_removed(fs, store, monkeypatch, caplog):
    store.create("b", "src", b"new")
    store.create("b", "dst", b"old")

    def failing_delete(bucket, key):
        raise StoreError("permission denied")

    monkeypatch.setattr(store, "delete", failing_delete)
    with caplog.at_level(logging.WARNING, logger="pygsfs.operations"):
        fs.cp("/b/src", "/b/dst", overwrite=True)
    assert "could not delete copy target path=gs://b/dst" in caplog.text
    assert store.read("b", "dst") == b"new"


def test_exists_logs_the_failure_at_debug(fs, caplog):
    with caplog.at_level(logging.INFO, logger="pygsfs.operations"):
        assert fs.exists("/b/missing") is False
    assert "exists -> False" not in caplog.text

    with caplog.at_level(logging.DEBUG, logger="pygsfs.operations"):
        assert fs.exists("/b/missing") is False
    assert "exists -> False path=/b/missing" in caplog.text


def test_is_same_file(fs):
    assert fs.is_same_file("/b/x", "x")
    assert not fs.is_same_file("/b/x", "/b/y")


def test_operations_reject_foreign_paths(fs):
    with pytest.raises(InvalidPath):
        fs.operations.read_attributes("/b/x")
