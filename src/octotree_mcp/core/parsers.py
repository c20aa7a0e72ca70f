from __future__ import annotations

from .models import FileEntry


def parse_ls_tree_record(record: str) -> FileEntry | None:
    """
    Parses one `git ls-tree --long -r -z` record:
      <mode> SP <type> SP <object> SP+ <size> TAB <path>
    The path is taken verbatim; only the metadata is split on whitespace.
    Returns None for non-blob entries (submodules) and malformed records.
    """
    meta, sep, path = record.partition("\t")
    if not sep or not meta.strip() or not path:
        return None

    parts = meta.split()
    if len(parts) < 4:
        return None
    if parts[1] != "blob":
        return None

    return FileEntry(path=path, size=parse_size(parts[3]))


def parse_size(value: str) -> int:
    """`-` (no size) and junk both count as zero bytes."""
    if value == "-":
        return 0
    try:
        return max(0, int(value))
    except ValueError:
        return 0


def parse_ls_files_record(record: str) -> str | None:
    """
    One `git ls-files -z` record is a repository-relative path, verbatim.
    """
    return record or None


def parse_unix_seconds_ms(output: str) -> int | None:
    """
    Parses `%ct`-style output (unix seconds) into epoch milliseconds.
    """
    text = (output or "").strip()
    if not text:
        return None
    try:
        return int(text.splitlines()[0].strip()) * 1000
    except ValueError:
        return None


def parse_count(output: str) -> int | None:
    """
    Parses `git rev-list --count` output.
    """
    text = (output or "").strip()
    try:
        return int(text)
    except ValueError:
        return None
