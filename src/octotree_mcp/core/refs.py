from __future__ import annotations

import asyncio

from .errors import GitExecutionError, UnresolvableRefError, UnsupportedObjectTypeError
from .git_runner import AsyncGitRunner
from .models import ResolvedRef


CURRENT_REF = "HEAD"


async def resolve_ref(runner: AsyncGitRunner, ref: str) -> ResolvedRef:
    """
    Classify `ref` as commit, tag or tree and return the tree to expand.

    Raw tree objects carry no commit, so `commit_id` is None for them.
    """
    if not ref or ref.startswith("-"):
        raise UnresolvableRefError(f"Failed to resolve git ref: {ref}")

    try:
        object_id = await runner.output(["rev-parse", "--verify", ref], context="resolve_ref(rev-parse)")
        object_type = await runner.output(["cat-file", "-t", object_id], context="resolve_ref(cat-file)")
    except GitExecutionError as e:
        raise UnresolvableRefError(f"Failed to resolve git ref: {ref}") from e

    if object_type == "commit":
        tree_id = await runner.output(
            ["rev-parse", "--verify", f"{object_id}^{{tree}}"],
            context="resolve_ref(commit tree)",
        )
        return ResolvedRef(tree_id=tree_id, commit_id=object_id)

    if object_type == "tag":
        # Tags may point at any object; only tags of commits have a tree to expand.
        peeled_type = await runner.output(
            ["cat-file", "-t", f"{object_id}^{{}}"],
            context="resolve_ref(tag target)",
        )
        if peeled_type != "commit":
            raise UnsupportedObjectTypeError(ref, peeled_type)
        commit_id, tree_id = await asyncio.gather(
            runner.output(["rev-parse", "--verify", f"{object_id}^{{commit}}"], context="resolve_ref(tag commit)"),
            runner.output(["rev-parse", "--verify", f"{object_id}^{{tree}}"], context="resolve_ref(tag tree)"),
        )
        return ResolvedRef(tree_id=tree_id, commit_id=commit_id)

    if object_type == "tree":
        return ResolvedRef(tree_id=object_id, commit_id=None)

    raise UnsupportedObjectTypeError(ref, object_type)


async def has_commits(runner: AsyncGitRunner) -> bool:
    """False for a freshly initialised repository with no commits on any ref."""
    res = await runner.run(["rev-list", "-n", "1", "--all"])
    return res.exit_code == 0 and bool(res.stdout.strip())
