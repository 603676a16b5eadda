# pesvcs

A small version control system that keeps its data in a `.pes` directory
next to your files. Every blob, tree and commit is stored once, under the
SHA-256 hash of its contents. Each object is checked against that hash when
it is read back.

## Installing

```
pip install .
```

This installs the `pes` command.

## Using the command

Run every command from the top of your working directory. The commands
always work on the current directory.

```
pes init                      # create .pes with objects, refs and HEAD
pes add README.md notes.txt   # stage files
pes status                    # staged, modified, deleted and untracked files
pes commit -m "First commit"  # record a commit and move the current branch
pes log                       # show history, newest first
```

- `pes init` creates `.pes`, `.pes/objects` and `.pes/refs/heads`. If there
  is no `HEAD` yet, it writes one that points at the branch `main`. You can
  run it again safely on an existing repository.
- `pes add` stores each file as a blob and records it in the index. The
  index is saved only when every named file was staged. If one file fails,
  none of the changes are kept.
- `pes status` has three sections:
  - every staged path;
  - staged paths that were deleted, or whose size or modification time
    changed since they were staged;
  - untracked regular files at the top level of the directory. This section
    skips `.pes`, `pes` and any name that contains `.o`.
- `pes commit -m <msg>` writes a commit whose parent is the current `HEAD`,
  if there is one. It then moves `HEAD` to the new commit. If `HEAD` names a
  branch, that branch is moved instead. It prints the first 12 hex digits of
  the new commit.
- `pes log` follows the parent chain from `HEAD` back to the first commit.
  For each commit it prints the hash, the author, the timestamp (Unix
  seconds) and the message. Without commits it reports `No commits yet.`

Errors are printed to standard error. Running `pes` with no command, or
with an unknown command, exits with status 1. In every other case the exit
status is 0, even when the command reported an error.

The author of each commit comes from the `PES_AUTHOR` environment variable.
A built-in default is used when it is unset or empty:

```
export PES_AUTHOR="Ada Example <ada@example.com>"
```

## Repository layout

```
.pes/
  HEAD                 ref: refs/heads/main
  index                one line per staged file
  objects/XX/YYYY...   objects sharded by the first two hex digits
  refs/heads/main      hash of the latest commit on main
```

Objects are stored as `<type> <size>\0<data>` and written atomically,
through a temporary file and a rename.

Each index line holds one staged path:

```
<mode-octal> <hash> <mtime> <size> <path>
```

A tree is a sequence of `<mode-octal> <name>\0<32-byte hash>` entries,
sorted by name. A commit is text with these lines, in order:

- `tree`
- an optional `parent`
- `author`
- `committer`
- a blank line
- the message

## Using it from Python

The same operations are available as a library.

- `pesvcs.objects`
  - `ObjectID`, with `from_hex` and `hex`, and `ObjectType`.
  - `ObjectStore`, with `write`, `read`, `exists` and `path`.
  - `compute_hash` and `pes_author`.
  - Errors: a missing object raises `ObjectNotFoundError`. An object whose
    contents no longer match its hash, or that is malformed, raises
    `CorruptObjectError`. Both derive from `PesError`.
- `pesvcs.tree`
  - `TreeEntry`, `serialize_tree`, `parse_tree` and `get_file_mode`.
  - `serialize_tree` sorts entries by name, so the same entries always give
    the same bytes.
  - `tree_from_index` writes the root tree used by a commit.
- `pesvcs.index`
  - `Index`, with `load`, `add`, `remove`, `find`, `save` and `status`.
  - `add` does not save the index. `remove` does.
  - `status` returns a `StatusReport`. `format_status` renders it as text.
- `pesvcs.commit`
  - `Commit`, `serialize_commit` and `parse_commit`.
  - `read_head` and `update_head`.
  - `walk_commits`, a generator that yields commits newest first.
  - `create_commit`.
- `pesvcs.cli`
  - `main`, and the `cmd_init`, `cmd_add`, `cmd_status`, `cmd_commit` and
    `cmd_log` functions behind each command.
  - A failing command raises `CommandError`, whose message is what the user
    sees.

## What it does not do

- A commit does not yet record the staged files. `tree_from_index` always
  writes an empty tree, so every commit points at the same empty snapshot.
  The file contents are still kept as blobs by `pes add`.
- There is no way to restore a snapshot into the working directory.
- There are no commands to create, list or switch branches, and no diff,
  merge or remote operations.
- `pes status` compares the working directory with the index only, not with
  the last commit.
- The untracked section does not look inside subdirectories.

## Running the tests

```
pip install ".[test]"
pytest
```