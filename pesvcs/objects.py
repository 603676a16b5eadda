"""Content-addressable object store keyed by SHA-256."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

HASH_SIZE = 32
HASH_HEX_SIZE = 64
PES_DIR = ".pes"
OBJECTS_DIR = f"{PES_DIR}/objects"
REFS_DIR = f"{PES_DIR}/refs/heads"
INDEX_FILE = f"{PES_DIR}/index"
HEAD_FILE = f"{PES_DIR}/HEAD"
DEFAULT_AUTHOR = "PES User <pes@localhost>"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class PesError(Exception):
    """Base class for repository errors."""


class ObjectNotFoundError(PesError):
    """The requested object is not in the store."""


class CorruptObjectError(PesError):
    """A stored object is damaged or malformed."""


class ObjectType(Enum):
    """Kinds of objects kept in the store."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


@dataclass(frozen=True)
class ObjectID:
    """A SHA-256 digest naming an object."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != HASH_SIZE:
            raise ValueError(f"object id must be {HASH_SIZE} bytes, got {len(self.digest)}")

    @classmethod
    def from_hex(cls, text: str) -> ObjectID:
        """Parse the first 64 hex characters of ``text``."""
        if len(text) < HASH_HEX_SIZE:
            raise ValueError(f"hex object id too short: {text!r}")
        head = text[:HASH_HEX_SIZE]
        if not set(head) <= _HEX_DIGITS:
            raise ValueError(f"invalid hex object id: {text!r}")
        return cls(bytes.fromhex(head))

    def hex(self) -> str:
        """Return the 64-character lower-case hex form."""
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex()


def compute_hash(data: bytes) -> ObjectID:
    """Return the SHA-256 of ``data`` as an ObjectID."""
    return ObjectID(hashlib.sha256(data).digest())


def pes_author() -> str:
    """Return the author from PES_AUTHOR, or the default when unset or empty."""
    return os.environ.get("PES_AUTHOR") or DEFAULT_AUTHOR


class ObjectStore:
    """Objects stored under ``<root>/.pes/objects/XX/YYYY...``."""

    def __init__(self, root: str | os.PathLike[str] = ".") -> None:
        self.root = Path(root)
        self.pes_dir = self.root / PES_DIR
        self.objects_dir = self.root / OBJECTS_DIR

    def path(self, oid: ObjectID) -> Path:
        """Return the file path that holds ``oid``."""
        text = oid.hex()
        return self.objects_dir / text[:2] / text[2:]

    def exists(self, oid: ObjectID) -> bool:
        """Tell whether ``oid`` is present in the store."""
        return self.path(oid).exists()

    def write(self, obj_type: ObjectType, data: bytes) -> ObjectID:
        """Store ``data`` as an object of ``obj_type`` and return its id."""
        obj_type = ObjectType(obj_type)
        payload = f"{obj_type.value} {len(data)}".encode("ascii") + b"\0" + bytes(data)
        oid = compute_hash(payload)
        if self.exists(oid):
            return oid

        target = self.path(oid)
        target.parent.mkdir(parents=True, exist_ok=True)
        temp = target.with_name(target.name + ".tmp")
        with open(temp, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp, target)
        return oid

    def read(self, oid: ObjectID) -> tuple[ObjectType, bytes]:
        """Read ``oid``, verify it and return its type and contents."""
        try:
            payload = self.path(oid).read_bytes()
        except FileNotFoundError as exc:
            raise ObjectNotFoundError(f"object {oid.hex()} not found") from exc

        if compute_hash(payload) != oid:
            raise CorruptObjectError(f"object {oid.hex()} failed integrity check")

        header, sep, body = payload.partition(b"\0")
        if not sep:
            raise CorruptObjectError(f"object {oid.hex()} has no header terminator")

        for kind in ObjectType:
            if header.startswith(kind.value.encode("ascii")):
                return kind, body
        raise CorruptObjectError(f"object {oid.hex()} has unknown type")