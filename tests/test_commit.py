import time

import pytest

from pesvcs.commit import (
    Commit,
    create_commit,
    parse_commit,
    read_head,
    serialize_commit,
    update_head,
    walk_commits,
)
from pesvcs.objects import (
    DEFAULT_AUTHOR,
    CorruptObjectError,
    ObjectID,
    ObjectStore,
    ObjectType,
    PesError,
)
from pesvcs.tree import tree_from_index

TREE_ID = ObjectID(bytes([0xAA]) * 32)
PARENT_ID = ObjectID(bytes([0xBB]) * 32)


def _init_repo(root):
    (root / ".pes" / "objects").mkdir(parents=True)
    (root / ".pes" / "refs" / "heads").mkdir(parents=True)
    (root / ".pes" / "HEAD").write_text("ref: refs/heads/main\n")
    return ObjectStore(root)


def test_serialize_with_parent_format():
    commit = Commit(tree=TREE_ID, author="Ann", timestamp=123, message="msg", parent=PARENT_ID)
    expected = (
        f"tree {TREE_ID.hex()}\nparent {PARENT_ID.hex()}\n"
        "author Ann 123\ncommitter Ann 123\n\nmsg"
    ).encode()
    assert serialize_commit(commit) == expected


def test_serialize_without_parent_omits_line():
    commit = Commit(tree=TREE_ID, author="Ann", timestamp=5, message="first")
    data = serialize_commit(commit)
    assert b"parent" not in data
    assert data.startswith(b"tree " + TREE_ID.hex().encode() + b"\nauthor Ann 5\n")


@pytest.mark.parametrize("parent", [None, PARENT_ID])
def test_round_trip(parent):
    commit = Commit(
        tree=TREE_ID,
        author="PES User <pes@example.com>",
        timestamp=1699900000,
        message="line one\nline two\n",
        parent=parent,
    )
    assert parse_commit(serialize_commit(commit)) == commit


def test_parse_rejects_missing_tree():
    with pytest.raises(CorruptObjectError):
        parse_commit(b"author Ann 1\ncommitter Ann 1\n\nmsg")


def test_parse_rejects_author_without_timestamp():
    data = f"tree {TREE_ID.hex()}\nauthor Ann\ncommitter Ann\n\nmsg".encode()
    with pytest.raises(CorruptObjectError):
        parse_commit(data)


def test_read_head_without_commits_raises(tmp_path):
    _init_repo(tmp_path)
    with pytest.raises(PesError):
        read_head(tmp_path)


def test_update_head_follows_branch_ref(tmp_path):
    _init_repo(tmp_path)
    update_head(tmp_path, TREE_ID)
    ref = tmp_path / ".pes" / "refs" / "heads" / "main"
    assert ref.read_text() == TREE_ID.hex() + "\n"
    assert read_head(tmp_path) == TREE_ID


def test_update_head_detached(tmp_path):
    _init_repo(tmp_path)
    (tmp_path / ".pes" / "HEAD").write_text(PARENT_ID.hex() + "\n")
    assert read_head(tmp_path) == PARENT_ID
    update_head(tmp_path, TREE_ID)
    assert (tmp_path / ".pes" / "HEAD").read_text() == TREE_ID.hex() + "\n"


def test_create_first_commit(tmp_path, monkeypatch):
    monkeypatch.delenv("PES_AUTHOR", raising=False)
    store = _init_repo(tmp_path)
    before = int(time.time())
    oid = create_commit(store, "initial")
    after = int(time.time())

    assert read_head(tmp_path) == oid
    kind, data = store.read(oid)
    assert kind is ObjectType.COMMIT
    commit = parse_commit(data)
    assert commit.parent is None
    assert commit.message == "initial"
    assert commit.author == DEFAULT_AUTHOR
    assert commit.tree == tree_from_index(store)
    assert before <= commit.timestamp <= after


def test_create_uses_author_env(tmp_path, monkeypatch):
    monkeypatch.setenv("PES_AUTHOR", "Jane <jane@example.com>")
    store = _init_repo(tmp_path)
    oid = create_commit(store, "by jane")
    assert parse_commit(store.read(oid)[1]).author == "Jane <jane@example.com>"


def test_walk_newest_first(tmp_path):
    store = _init_repo(tmp_path)
    first = create_commit(store, "one")
    second = create_commit(store, "two")
    third = create_commit(store, "three")
    history = list(walk_commits(store))
    assert [oid for oid, _ in history] == [third, second, first]
    assert [c.message for _, c in history] == ["three", "two", "one"]
    assert history[0][1].parent == second
    assert history[-1][1].parent is None


def test_walk_without_commits_raises(tmp_path):
    store = _init_repo(tmp_path)
    with pytest.raises(PesError):
        list(walk_commits(store))