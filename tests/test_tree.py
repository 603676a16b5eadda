import os

import pytest

from pesvcs.objects import CorruptObjectError, ObjectID, ObjectStore, ObjectType
from pesvcs.tree import (
    MODE_DIR,
    MODE_EXEC,
    MODE_FILE,
    TreeEntry,
    get_file_mode,
    parse_tree,
    serialize_tree,
    tree_from_index,
)


def _oid(byte):
    return ObjectID(bytes([byte]) * 32)


def test_tree_roundtrip():
    original = [
        TreeEntry(0o100644, _oid(0xAA), "README.md"),
        TreeEntry(0o040000, _oid(0xBB), "src"),
        TreeEntry(0o100755, _oid(0xCC), "build.sh"),
    ]
    data = serialize_tree(original)
    assert len(data) > 0

    parsed = parse_tree(data)
    assert len(parsed) == 3
    assert [e.name for e in parsed] == ["README.md", "build.sh", "src"]
    assert parsed[0].mode == 0o100644
    assert parsed[1].mode == 0o100755
    assert parsed[2].mode == 0o040000
    assert parsed[0].oid == original[0].oid


def test_tree_determinism():
    tree_a = [
        TreeEntry(0o100644, _oid(0x11), "z_file.txt"),
        TreeEntry(0o100644, _oid(0x22), "a_file.txt"),
    ]
    tree_b = [
        TreeEntry(0o100644, _oid(0x22), "a_file.txt"),
        TreeEntry(0o100644, _oid(0x11), "z_file.txt"),
    ]
    assert serialize_tree(tree_a) == serialize_tree(tree_b)


def test_serialized_layout():
    data = serialize_tree([TreeEntry(MODE_FILE, _oid(0x01), "a")])
    assert data == b"100644 a\0" + b"\x01" * 32


def test_directory_mode_text():
    data = serialize_tree([TreeEntry(MODE_DIR, _oid(0x02), "d")])
    assert data.startswith(b"40000 d\0")


def test_empty_tree():
    assert serialize_tree([]) == b""
    assert parse_tree(b"") == []


def test_parse_missing_space():
    with pytest.raises(CorruptObjectError):
        parse_tree(b"100644")


def test_parse_missing_nul():
    with pytest.raises(CorruptObjectError):
        parse_tree(b"100644 name")


def test_parse_truncated_hash():
    with pytest.raises(CorruptObjectError):
        parse_tree(b"100644 name\0" + b"\x00" * 10)


def test_parse_name_too_long():
    with pytest.raises(CorruptObjectError):
        parse_tree(b"100644 " + b"n" * 256 + b"\0" + b"\x00" * 32)


def test_parse_mode_too_long():
    with pytest.raises(CorruptObjectError):
        parse_tree(b"1" * 16 + b" n\0" + b"\x00" * 32)


def test_file_mode_regular(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_text("x")
    os.chmod(path, 0o644)
    assert get_file_mode(path) == MODE_FILE


def test_file_mode_executable(tmp_path):
    path = tmp_path / "run.sh"
    path.write_text("#!/bin/sh\n")
    os.chmod(path, 0o755)
    assert get_file_mode(path) == MODE_EXEC


def test_file_mode_directory(tmp_path):
    assert get_file_mode(tmp_path) == MODE_DIR


def test_file_mode_missing(tmp_path):
    assert get_file_mode(tmp_path / "missing") == 0


def test_tree_from_index_writes_empty_tree(tmp_path):
    (tmp_path / ".pes" / "objects").mkdir(parents=True)
    store = ObjectStore(tmp_path)
    oid = tree_from_index(store)
    assert store.exists(oid)
    assert store.read(oid) == (ObjectType.TREE, b"")
    assert tree_from_index(store) == oid