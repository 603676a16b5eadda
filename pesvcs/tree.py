"""Tree objects: directory snapshots mapping names to blobs or subtrees."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from typing import Iterable

from .objects import HASH_SIZE, CorruptObjectError, ObjectID, ObjectStore, ObjectType

MODE_FILE = 0o100644
MODE_EXEC = 0o100755
MODE_DIR = 0o040000

MAX_TREE_ENTRIES = 1024
_MAX_MODE_LEN = 15
_MAX_NAME_LEN = 255


@dataclass(frozen=True)
class TreeEntry:
    """One named entry of a tree."""

    mode: int
    oid: ObjectID
    name: str


def get_file_mode(path: str | os.PathLike[str]) -> int:
    """Return the tree mode for ``path``, or 0 if it cannot be examined."""
    try:
        info = os.lstat(path)
    except OSError:
        return 0
    if stat.S_ISDIR(info.st_mode):
        return MODE_DIR
    if info.st_mode & stat.S_IXUSR:
        return MODE_EXEC
    return MODE_FILE


def _parse_octal(text: bytes) -> int:
    digits = bytearray()
    for byte in text:
        if not 0x30 <= byte <= 0x37:
            break
        digits.append(byte)
    return int(digits, 8) if digits else 0


def parse_tree(data: bytes) -> list[TreeEntry]:
    """Parse binary tree data into its entries."""
    entries: list[TreeEntry] = []
    pos = 0
    end = len(data)
    while pos < end and len(entries) < MAX_TREE_ENTRIES:
        space = data.find(b" ", pos)
        if space < 0:
            raise CorruptObjectError("tree entry has no mode separator")
        mode_text = data[pos:space]
        if len(mode_text) > _MAX_MODE_LEN:
            raise CorruptObjectError("tree entry mode too long")
        pos = space + 1

        nul = data.find(b"\0", pos)
        if nul < 0:
            raise CorruptObjectError("tree entry name is not terminated")
        name = data[pos:nul]
        if len(name) > _MAX_NAME_LEN:
            raise CorruptObjectError("tree entry name too long")
        pos = nul + 1

        if pos + HASH_SIZE > end:
            raise CorruptObjectError("tree entry hash is truncated")
        digest = data[pos : pos + HASH_SIZE]
        pos += HASH_SIZE

        entries.append(
            TreeEntry(
                mode=_parse_octal(mode_text),
                oid=ObjectID(digest),
                name=name.decode("utf-8", "surrogateescape"),
            )
        )
    return entries


def serialize_tree(entries: Iterable[TreeEntry]) -> bytes:
    """Serialize entries, sorted by name, into binary tree data."""

    def encoded_name(entry: TreeEntry) -> bytes:
        return entry.name.encode("utf-8", "surrogateescape")

    return b"".join(
        f"{entry.mode:o} ".encode("ascii") + encoded_name(entry) + b"\0" + entry.oid.digest
        for entry in sorted(entries, key=encoded_name)
    )


def tree_from_index(store: ObjectStore) -> ObjectID:
    """Write the root tree for a commit and return its id; it has no entries."""
    return store.write(ObjectType.TREE, serialize_tree([]))