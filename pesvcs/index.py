"""The staging area: paths mapped to staged blobs, kept in ``.pes/index``."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .objects import INDEX_FILE, PES_DIR, ObjectID, ObjectStore, ObjectType, PesError

MAX_INDEX_ENTRIES = 10000
_MAX_PATH_LEN = 511


@dataclass
class IndexEntry:
    """One staged file with the metadata used for change detection."""

    mode: int
    oid: ObjectID
    mtime_sec: int
    size: int
    path: str

    def to_line(self) -> str:
        """Return the entry as one line of the index file."""
        return f"{self.mode:o} {self.oid.hex()} {self.mtime_sec} {self.size} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> IndexEntry | None:
        """Parse one line of the index file, or return None if it is malformed."""
        parts = line.split(maxsplit=4)
        if len(parts) != 5:
            return None
        mode_text, hex_text, mtime_text, size_text, path = parts
        try:
            return cls(
                mode=int(mode_text, 8),
                oid=ObjectID.from_hex(hex_text),
                mtime_sec=int(mtime_text),
                size=int(size_text),
                path=path.rstrip("\r\n"),
            )
        except ValueError:
            return None


@dataclass
class StatusReport:
    """Working-directory status relative to the index."""

    staged: list[str] = field(default_factory=list)
    unstaged: list[tuple[str, str]] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)

    @property
    def modified(self) -> list[str]:
        """Tracked paths whose size or mtime changed."""
        return [path for kind, path in self.unstaged if kind == "modified"]

    @property
    def deleted(self) -> list[str]:
        """Tracked paths that no longer exist."""
        return [path for kind, path in self.unstaged if kind == "deleted"]


class Index:
    """The list of staged entries for a repository rooted at ``root``."""

    def __init__(
        self, root: str | os.PathLike[str] = ".", entries: list[IndexEntry] | None = None
    ) -> None:
        self.root = Path(root)
        self.entries: list[IndexEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self.entries)

    @property
    def index_path(self) -> Path:
        return self.root / INDEX_FILE

    @classmethod
    def load(cls, root: str | os.PathLike[str] = ".") -> Index:
        """Load the index; a missing index file gives an empty index."""
        index = cls(root)
        try:
            text = index.index_path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return index
        for line in text.splitlines():
            entry = IndexEntry.from_line(line)
            if entry is None:
                break
            if len(index.entries) < MAX_INDEX_ENTRIES:
                index.entries.append(entry)
        return index

    def save(self) -> None:
        """Write the index file atomically."""
        (self.root / PES_DIR).mkdir(parents=True, exist_ok=True)
        target = self.index_path
        temp = target.with_name(target.name + ".tmp")
        with open(temp, "w", encoding="utf-8", errors="surrogateescape") as handle:
            for entry in self.entries:
                handle.write(entry.to_line() + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp, target)

    def find(self, path: str) -> IndexEntry | None:
        """Return the entry for ``path``, or None."""
        return next((entry for entry in self.entries if entry.path == path), None)

    def add(self, path: str, store: ObjectStore) -> IndexEntry:
        """Stage ``path``: store its contents as a blob and record it.

        The index is not saved; call ``save`` afterwards.
        """
        full = self.root / path
        try:
            data = full.read_bytes()
        except OSError as exc:
            raise PesError(f"cannot read '{path}'") from exc
        oid = store.write(ObjectType.BLOB, data)
        try:
            info = os.stat(full)
        except OSError as exc:
            raise PesError(f"cannot stat '{path}'") from exc

        entry = self.find(path)
        if entry is None:
            if len(self.entries) >= MAX_INDEX_ENTRIES:
                raise PesError("index is full")
            entry = IndexEntry(mode=0, oid=oid, mtime_sec=0, size=0, path=path[:_MAX_PATH_LEN])
            self.entries.append(entry)
        entry.mode = info.st_mode
        entry.mtime_sec = int(info.st_mtime)
        entry.size = info.st_size
        entry.oid = oid
        return entry

    def remove(self, path: str) -> None:
        """Unstage ``path`` and save the index."""
        entry = self.find(path)
        if entry is None:
            raise PesError(f"'{path}' is not in the index")
        self.entries.remove(entry)
        self.save()

    def status(self) -> StatusReport:
        """Compare the index with the working directory."""
        report = StatusReport(staged=[entry.path for entry in self.entries])

        for entry in self.entries:
            try:
                info = os.stat(self.root / entry.path)
            except OSError:
                report.unstaged.append(("deleted", entry.path))
                continue
            if int(info.st_mtime) != entry.mtime_sec or info.st_size != entry.size:
                report.unstaged.append(("modified", entry.path))

        tracked = {entry.path for entry in self.entries}
        try:
            names = sorted(os.listdir(self.root))
        except OSError:
            names = []
        for name in names:
            if name in (PES_DIR, "pes") or ".o" in name or name in tracked:
                continue
            try:
                mode = os.stat(self.root / name).st_mode
            except OSError:
                continue
            if stat.S_ISREG(mode):
                report.untracked.append(name)
        return report


def _section(title: str, rows: list[tuple[str, str]]) -> str:
    lines = [f"{title}:"]
    lines.extend(f"  {label + ':':<12}{path}" for label, path in rows)
    if not rows:
        lines.append("  (nothing to show)")
    return "\n".join(lines) + "\n\n"


def format_status(report: StatusReport) -> str:
    """Render a status report as text."""
    return (
        _section("Staged changes", [("staged", path) for path in report.staged])
        + _section("Unstaged changes", report.unstaged)
        + _section("Untracked files", [("untracked", path) for path in report.untracked])
    )