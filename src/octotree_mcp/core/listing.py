from __future__ import annotations

import asyncio
import logging
import os
import stat
from pathlib import Path

from .errors import CommitTimestampUnavailable, GitExecutionError, ListingError
from .git_runner import AsyncGitRunner
from .models import FileEntry
from .parsers import parse_ls_files_record, parse_ls_tree_record, parse_unix_seconds_ms


logger = logging.getLogger(__name__)


async def list_files(runner: AsyncGitRunner, tree_id: str) -> list[FileEntry]:
    """
    Every blob reachable from `tree_id` with its size.

    Records are parsed as git streams them; the raw listing is never held in memory.
    NUL-delimited output keeps paths unquoted, whatever characters they contain.
    """
    args = ["ls-tree", "--full-tree", "--long", "-r", "-z", tree_id]
    entries: list[FileEntry] = []
    try:
        async for record in runner.stream_lines(args, sep=b"\0"):
            entry = parse_ls_tree_record(record)
            if entry is not None:
                entries.append(entry)
    except GitExecutionError as e:
        raise ListingError(f"Git command failed (git ls-tree -r {tree_id}): {e}") from e
    return entries


async def commit_time_ms(runner: AsyncGitRunner, commit_id: str | None) -> int | None:
    """Committer time in epoch ms; None in raw-tree mode."""
    if commit_id is None:
        return None

    res = await runner.run(["show", "-s", "--format=%ct", commit_id])
    if res.exit_code != 0:
        raise CommitTimestampUnavailable(f"Could not read commit time for {commit_id}: {res.stderr.strip()}")

    value = parse_unix_seconds_ms(res.stdout)
    if value is None:
        raise CommitTimestampUnavailable(f"Unparsable commit time for {commit_id}: {res.stdout!r}")
    return value


async def list_tracked_paths(runner: AsyncGitRunner) -> list[str]:
    args = ["ls-files", "--cached", "--exclude-standard", "-z"]
    paths: list[str] = []
    try:
        async for record in runner.stream_lines(args, sep=b"\0"):
            p = parse_ls_files_record(record)
            if p:
                paths.append(p)
    except GitExecutionError as e:
        raise ListingError(f"Git command failed (git ls-files --cached --exclude-standard): {e}") from e
    return paths


async def _stat_entry(repo_root: Path, rel_path: str) -> FileEntry | None:
    """None means skip: the file vanished after listing, or it is a gitlink directory."""
    try:
        st = await asyncio.to_thread(os.stat, repo_root / rel_path)
    except FileNotFoundError:
        logger.debug("Skipping %s: removed before it could be stat'ed", rel_path)
        return None
    if stat.S_ISDIR(st.st_mode):
        return None
    return FileEntry(path=rel_path, size=st.st_size, modified_at_ms=st.st_mtime_ns // 1_000_000)


async def list_working_tree(runner: AsyncGitRunner) -> list[FileEntry]:
    """
    Tracked files as they are on disk right now, with real size and mtime.
    """
    paths = await list_tracked_paths(runner)
    results = await asyncio.gather(*(_stat_entry(runner.root, p) for p in paths))
    return [entry for entry in results if entry is not None]
