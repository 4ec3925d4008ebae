from datetime import datetime, timezone

import pytest

from pygsfs import AlreadyExists, AttributesView, IOFailure
from pygsfs.core import copy_between
from pygsfs.errors import StoreError


def test_gs_roundtrip(fs):
    fs.mkdirs("x/y", exist_ok=True)
    fs.write_text("x/y/hello.txt", "hi")
    assert fs.read_text("x/y/hello.txt") == "hi"
    assert "hello.txt" in "\n".join(fs.ls("x/y"))
    fs.cp("x/y/hello.txt", "x/y/hello_copy.txt")
    assert fs.exists("x/y/hello_copy.txt")
    fs.mv("x/y/hello_copy.txt", "x/y/hello_moved.txt", overwrite=True)
    assert fs.exists("x/y/hello_moved.txt")
    assert not fs.exists("x/y/hello_copy.txt")
    fs.rm("x", recursive=True)
    assert not fs.exists("x")


def test_is_file_and_is_dir(fs, store):
    store.create("b", "d/f.txt", b"1")
    assert fs.is_file("d/f.txt")
    assert not fs.is_dir("d/f.txt")
    assert fs.is_dir("d")
    assert not fs.is_file("d")
    assert fs.is_dir("/b")
    assert not fs.is_dir("nothing")


def test_walk(fs, store):
    for key in ["top.txt", "a/1.txt", "a/b/2.txt"]:
        store.create("b", key, b"")
    walked = [(str(p), dirs, files) for p, dirs, files in fs.walk()]
    assert walked == [
        ("/b", ["a"], ["top.txt"]),
        ("/b/a", ["b"], ["1.txt"]),
        ("/b/a/b", [], ["2.txt"]),
    ]


def test_rm_without_recursive_on_non_empty_dir(fs, store):
    store.create("b", "d/f", b"")
    with pytest.raises(OSError):
        fs.rm("d")
    assert store.keys("b") == ["d/f"]


def test_rm_recursive_removes_markers(fs, store):
    for key in ["d/", "d/e/", "d/e/f.txt", "d/g.txt", "keep.txt"]:
        store.create("b", key, b"")
    fs.rm("d", recursive=True)
    assert store.keys("b") == ["keep.txt"]


def test_mkdirs_exist_ok(fs):
    fs.mkdirs("d")
    fs.mkdirs("d")
    with pytest.raises(AlreadyExists):
        fs.mkdirs("d", exist_ok=False)


def test_copy_between_file_systems(fs, store, registry):
    store.create_bucket("dst")
    fs.write_bytes("src.bin", b"\x00\x01\x02" * 1000)
    dst_fs = registry.get_file_system("dst")
    stamp = datetime(2020, 1, 1, tzinfo=timezone.utc)
    copy_between(fs, "src.bin", dst_fs, "out.bin", times=(stamp, stamp, stamp))
    assert dst_fs.read_bytes("out.bin") == b"\x00\x01\x02" * 1000
    # timestamps stay store-assigned
    assert dst_fs.stat("out.bin").last_modified_time != stamp


def test_attribute_view(fs, store):
    store.create("b", "f", b"abc")
    view = fs.attribute_view("f")
    assert isinstance(view, AttributesView)
    assert view.name in fs.supported_attribute_views
    assert view.read_attributes().size == 3
    assert view.set_times(None, None, None) is None


def test_root_directories(fs, store, registry):
    store.create_bucket("c")
    roots = fs.root_directories()
    assert [str(p) for p in roots] == ["/b", "/c"]
    assert roots[0] == fs.root
    assert roots[1].file_system is registry.get_file_system("c")


def test_root_directories_wraps_store_errors(fs, store, monkeypatch):
    def broken():
        raise StoreError("forbidden")

    monkeypatch.setattr(store, "list_buckets", broken)
    with pytest.raises(IOFailure):
        fs.root_directories()


def test_file_system_properties(fs):
    assert fs.separator == "/"
    assert fs.is_open
    assert not fs.is_read_only
    assert str(fs.root) == "/b"
    assert fs.is_hidden(".cache")
    fs.close()
