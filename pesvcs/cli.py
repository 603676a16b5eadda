"""Command-line interface: init, add, status, commit and log."""

from __future__ import annotations

import contextlib
import os
import sys
from pathlib import Path
from typing import Sequence

from .commit import create_commit, walk_commits
from .index import Index, IndexEntry, StatusReport, format_status
from .objects import HEAD_FILE, OBJECTS_DIR, PES_DIR, REFS_DIR, ObjectID, ObjectStore, PesError

_USAGE = """\
Usage: pes <command> [args]

Commands:
  init            Create a new PES repository
  add <file>...   Stage files for commit
  status          Show working directory status
  commit -m <msg> Create a commit from staged files
  log             Show commit history
"""


class CommandError(PesError):
    """A command failed; the message is what the user is shown."""


def cmd_init(root: str | os.PathLike[str] = ".") -> Path:
    """Create the repository layout and an initial HEAD; return the .pes path."""
    root = Path(root)
    pes_dir = root / PES_DIR
    try:
        pes_dir.mkdir()
    except OSError:
        if not pes_dir.exists():
            raise CommandError(f"error: failed to create {PES_DIR}") from None

    for sub in (OBJECTS_DIR, f"{PES_DIR}/refs", REFS_DIR):
        with contextlib.suppress(OSError):
            (root / sub).mkdir()

    head = root / HEAD_FILE
    if not head.exists():
        with contextlib.suppress(OSError):
            head.write_text("ref: refs/heads/main\n", encoding="utf-8")

    print(f"Initialized empty PES repository in {PES_DIR}/")
    return pes_dir


def cmd_add(root: str | os.PathLike[str], paths: Sequence[str]) -> list[IndexEntry]:
    """Stage each path; the index is saved only if every path was staged."""
    if not paths:
        raise CommandError("Usage: pes add <file>...")
    try:
        index = Index.load(root)
    except (PesError, OSError) as exc:
        raise CommandError("error: failed to load index") from exc

    store = ObjectStore(root)
    staged = []
    for path in paths:
        try:
            staged.append(index.add(path, store))
        except (PesError, OSError) as exc:
            raise CommandError(f"error: failed to add '{path}'") from exc

    try:
        index.save()
    except OSError as exc:
        raise CommandError("error: failed to save index") from exc
    return staged


def cmd_status(root: str | os.PathLike[str] = ".") -> StatusReport:
    """Print the working-directory status and return the report."""
    try:
        index = Index.load(root)
    except (PesError, OSError) as exc:
        raise CommandError("error: failed to load index") from exc
    report = index.status()
    print(format_status(report), end="")
    return report


def cmd_commit(root: str | os.PathLike[str], message: str | None) -> ObjectID:
    """Create a commit with ``message`` and print its short id."""
    if message is None:
        raise CommandError('error: commit requires a message (-m "message")')
    try:
        oid = create_commit(ObjectStore(root), message)
    except (PesError, OSError) as exc:
        raise CommandError("error: commit failed") from exc
    print(f"Committed: {oid.hex()[:12]}... {message}")
    return oid


def cmd_log(root: str | os.PathLike[str] = ".") -> int:
    """Print history from HEAD, newest first; return how many commits were shown."""
    shown = 0
    try:
        for oid, commit in walk_commits(ObjectStore(root)):
            print(f"commit {oid.hex()}")
            print(f"Author: {commit.author}")
            print(f"Date:   {commit.timestamp}")
            print(f"\n    {commit.message}\n")
            shown += 1
    except (PesError, OSError) as exc:
        raise CommandError("No commits yet.") from exc
    return shown


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command; return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        sys.stderr.write(_USAGE)
        return 1

    command, rest = args[0], args[1:]
    root = "."
    try:
        if command == "init":
            cmd_init(root)
        elif command == "add":
            cmd_add(root, rest)
        elif command == "status":
            cmd_status(root)
        elif command == "commit":
            message = rest[1] if len(rest) >= 2 and rest[0] == "-m" else None
            cmd_commit(root, message)
        elif command == "log":
            cmd_log(root)
        else:
            print(f"Unknown command: {command}", file=sys.stderr)
            print("Run 'pes' with no arguments for usage.", file=sys.stderr)
            return 1
    except PesError as exc:
        print(exc, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())