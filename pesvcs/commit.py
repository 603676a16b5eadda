"""Commit objects, HEAD handling and history traversal."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .objects import (
    HEAD_FILE,
    PES_DIR,
    CorruptObjectError,
    ObjectID,
    ObjectStore,
    ObjectType,
    PesError,
    pes_author,
)
from .tree import tree_from_index

_MAX_AUTHOR_LEN = 255
_MAX_MESSAGE_LEN = 4095


@dataclass
class Commit:
    """A snapshot tree with its parent, author, time and message."""

    tree: ObjectID
    author: str
    timestamp: int
    message: str
    parent: ObjectID | None = None

    @property
    def has_parent(self) -> bool:
        return self.parent is not None


def _take_line(text: str) -> tuple[str, str]:
    line, sep, rest = text.partition("\n")
    if not sep:
        raise CorruptObjectError("commit is truncated")
    return line, rest


def _header_hash(line: str, key: str) -> ObjectID:
    tokens = line[len(key) + 1 :].split()
    if not tokens:
        raise CorruptObjectError(f"commit has an empty {key} line")
    try:
        return ObjectID.from_hex(tokens[0][:64])
    except ValueError as exc:
        raise CorruptObjectError(f"commit has a bad {key} hash") from exc


def _leading_int(text: str) -> int:
    text = text.lstrip()
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else 0


def parse_commit(data: bytes) -> Commit:
    """Parse raw commit object data."""
    text = bytes(data).decode("utf-8", "surrogateescape")

    if not text.startswith("tree "):
        raise CorruptObjectError("commit has no tree line")
    line, rest = _take_line(text)
    tree = _header_hash(line, "tree")

    parent = None
    if rest.startswith("parent "):
        line, rest = _take_line(rest)
        parent = _header_hash(line, "parent")

    if not rest.startswith("author "):
        raise CorruptObjectError("commit has no author line")
    line, rest = _take_line(rest)
    author_field = line[len("author ") :][:_MAX_AUTHOR_LEN]
    if not author_field:
        raise CorruptObjectError("commit has an empty author line")
    author, space, stamp = author_field.rpartition(" ")
    if not space:
        raise CorruptObjectError("commit author line has no timestamp")

    _, rest = _take_line(rest)  # committer
    _, rest = _take_line(rest)  # blank separator

    return Commit(
        tree=tree,
        author=author,
        timestamp=_leading_int(stamp),
        message=rest[:_MAX_MESSAGE_LEN],
        parent=parent,
    )


def serialize_commit(commit: Commit) -> bytes:
    """Serialize a commit to its stored text form."""
    lines = [f"tree {commit.tree.hex()}\n"]
    if commit.parent is not None:
        lines.append(f"parent {commit.parent.hex()}\n")
    lines.append(
        f"author {commit.author} {commit.timestamp}\n"
        f"committer {commit.author} {commit.timestamp}\n"
        f"\n"
        f"{commit.message}"
    )
    return "".join(lines).encode("utf-8", "surrogateescape")


def _first_line(path: Path) -> str:
    with open(path, encoding="utf-8") as handle:
        line = handle.readline()
    if not line:
        raise PesError(f"{path} is empty")
    return line.rstrip("\r\n")


def _head_line(root: Path) -> str:
    try:
        return _first_line(root / HEAD_FILE)
    except OSError as exc:
        raise PesError("cannot read HEAD") from exc


def read_head(root: str | os.PathLike[str] = ".") -> ObjectID:
    """Return the commit HEAD points to, following a symbolic ref."""
    root = Path(root)
    line = _head_line(root)
    if line.startswith("ref: "):
        try:
            line = _first_line(root / PES_DIR / line[len("ref: ") :])
        except OSError as exc:
            raise PesError("no commits yet") from exc
    try:
        return ObjectID.from_hex(line)
    except ValueError as exc:
        raise PesError("HEAD does not hold a commit hash") from exc


def update_head(root: str | os.PathLike[str], oid: ObjectID) -> None:
    """Point HEAD, or the branch it names, at ``oid`` with an atomic write."""
    root = Path(root)
    line = _head_line(root)
    if line.startswith("ref: "):
        target = root / PES_DIR / line[len("ref: ") :]
    else:
        target = root / HEAD_FILE
    temp = target.with_name(target.name + ".tmp")
    try:
        with open(temp, "w", encoding="utf-8") as handle:
            handle.write(oid.hex() + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp, target)
    except OSError as exc:
        raise PesError(f"cannot update {target}") from exc


def walk_commits(store: ObjectStore) -> Iterator[tuple[ObjectID, Commit]]:
    """Yield commits from HEAD back to the root commit, newest first."""
    oid: ObjectID | None = read_head(store.root)
    while oid is not None:
        _, data = store.read(oid)
        commit = parse_commit(data)
        yield oid, commit
        oid = commit.parent


def create_commit(store: ObjectStore, message: str) -> ObjectID:
    """Commit the staged snapshot, advance HEAD and return the new commit id."""
    tree = tree_from_index(store)
    try:
        parent: ObjectID | None = read_head(store.root)
    except PesError:
        parent = None
    commit = Commit(
        tree=tree,
        author=pes_author()[:_MAX_AUTHOR_LEN],
        timestamp=int(time.time()),
        message=message[:_MAX_MESSAGE_LEN],
        parent=parent,
    )
    oid = store.write(ObjectType.COMMIT, serialize_commit(commit))
    update_head(store.root, oid)
    return oid