from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from .errors import CommitTimestampUnavailable, GitExecutionError, RepositoryNotFoundError, UnresolvableRefError
from .git_runner import AsyncGitRunner, GitRunnerConfig
from .listing import commit_time_ms, list_files, list_working_tree
from .models import ROOT_PATH, FileEntry, NodeKind, TreeNode
from .refs import CURRENT_REF, has_commits, resolve_ref


logger = logging.getLogger(__name__)


def join_relative(parent: str, segment: str) -> str:
    return segment if parent == ROOT_PATH else f"{parent}/{segment}"


def make_id(relative_path: str, kind: NodeKind) -> str:
    return f"{kind}:{relative_path}"


def create_directory_node(relative_path: str, name: str, depth: int) -> TreeNode:
    return TreeNode(
        id=make_id(relative_path, "directory"),
        name=name,
        relative_path=relative_path,
        kind="directory",
        depth=depth,
    )


def create_file_node(relative_path: str, name: str, depth: int, size: int, modified_at_ms: int) -> TreeNode:
    return TreeNode(
        id=make_id(relative_path, "file"),
        name=name,
        relative_path=relative_path,
        kind="file",
        size=size,
        modified_at_ms=modified_at_ms,
        depth=depth,
    )


def _insert_file(
    root: TreeNode,
    nodes: dict[str, TreeNode],
    entry: FileEntry,
    fallback_mtime_ms: int,
) -> None:
    segments = [s for s in entry.path.split("/") if s]
    if not segments:
        return

    parent = root
    current_path = ROOT_PATH
    for segment in segments[:-1]:
        current_path = join_relative(current_path, segment)
        directory = nodes.get(current_path)
        if directory is None:
            directory = create_directory_node(current_path, segment, parent.depth + 1)
            nodes[current_path] = directory
            parent.children.append(directory)
        elif not directory.is_directory:
            logger.debug("Skipping %s: %s is already a file", entry.path, current_path)
            return
        parent = directory

    leaf_path = join_relative(current_path, segments[-1])
    if leaf_path in nodes:
        return

    mtime = entry.modified_at_ms if entry.modified_at_ms is not None else fallback_mtime_ms
    leaf = create_file_node(leaf_path, segments[-1], parent.depth + 1, entry.size, mtime)
    nodes[leaf_path] = leaf
    parent.children.append(leaf)


def sort_tree(node: TreeNode) -> None:
    """Directories first, then files; each group by name."""
    for current in node.walk():
        current.children.sort(key=lambda c: (not c.is_directory, c.name))


def aggregate_directory_metadata(node: TreeNode) -> tuple[int, int]:
    """Bottom-up size sum and newest mtime. Files are the authoritative leaves."""
    # Reversed pre-order visits every child before its parent.
    for current in reversed(list(node.walk())):
        if not current.is_directory:
            continue
        current.size = sum(c.size for c in current.children)
        current.modified_at_ms = max((c.modified_at_ms for c in current.children), default=0)
    return node.size, node.modified_at_ms


def assemble_tree(
    entries: Iterable[FileEntry],
    *,
    root_name: str,
    fallback_mtime_ms: int = 0,
) -> TreeNode:
    """
    Build the directory/file graph for a flat listing, then sort and aggregate it.

    The path -> node table lives only for this call.
    """
    root = create_directory_node(ROOT_PATH, root_name, 0)
    nodes: dict[str, TreeNode] = {ROOT_PATH: root}

    for entry in entries:
        _insert_file(root, nodes, entry, fallback_mtime_ms)

    sort_tree(root)
    aggregate_directory_metadata(root)
    return root


async def resolve_repo_root(runner: AsyncGitRunner) -> Path:
    try:
        top = await runner.output(["rev-parse", "--show-toplevel"], context="resolve_repo_root")
    except GitExecutionError as e:
        raise RepositoryNotFoundError(f"Failed to locate git repository at {runner.root}") from e
    if not top:
        raise RepositoryNotFoundError(f"Failed to locate git repository at {runner.root}")
    return Path(top)


async def _safe_commit_time_ms(runner: AsyncGitRunner, commit_id: str | None) -> int | None:
    try:
        return await commit_time_ms(runner, commit_id)
    except CommitTimestampUnavailable as e:
        logger.warning("%s; using 0 as modification time", e)
        return None


async def _entries_from_ref(runner: AsyncGitRunner, ref: str) -> tuple[list[FileEntry], int | None]:
    resolved = await resolve_ref(runner, ref)
    return await asyncio.gather(
        list_files(runner, resolved.tree_id),
        _safe_commit_time_ms(runner, resolved.commit_id),
    )


async def _fallback_eligible(runner: AsyncGitRunner, ref: str, allow_fallback: bool) -> bool:
    if not allow_fallback or ref != CURRENT_REF:
        return False
    return not await has_commits(runner)


async def build_repository_tree(
    repo_path: str | Path,
    ref: str | None = None,
    *,
    allow_fallback: bool = False,
    runner_config: GitRunnerConfig | None = None,
) -> TreeNode:
    """
    Build the annotated tree for `ref` (default HEAD) of the repository at `repo_path`.

    With `allow_fallback`, a repository with no commits yet is read from the
    working tree instead, but only when `ref` is HEAD.
    """
    runner = AsyncGitRunner(await resolve_repo_root(AsyncGitRunner(repo_path, runner_config)), runner_config)
    target_ref = ref if ref is not None else CURRENT_REF

    commit_ms: int | None = None
    try:
        entries, commit_ms = await _entries_from_ref(runner, target_ref)
    except UnresolvableRefError:
        if not await _fallback_eligible(runner, target_ref, allow_fallback):
            raise
        logger.info("No commits yet in %s; reading the working tree", runner.root)
        entries = await list_working_tree(runner)

    root = assemble_tree(entries, root_name=runner.root.name, fallback_mtime_ms=commit_ms or 0)
    if commit_ms:
        root.modified_at_ms = commit_ms

    logger.debug("Built tree for %s@%s: %d files, %d bytes", runner.root, target_ref, len(entries), root.size)
    return root
