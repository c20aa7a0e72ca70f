from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

from ..core.cache import TreeBuildCache
from ..core.errors import GitRepositoryError
from ..core.git_runner import AsyncGitRunner
from ..core.models import TreeSnapshot
from ..core.stats import collect_git_stats


logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TreeService:
    """
    Snapshot layer over the build cache: adds a timestamp and commit stats,
    and remembers the last snapshot for display.
    """

    def __init__(self, cache: TreeBuildCache, runner: AsyncGitRunner) -> None:
        self.cache = cache
        self.runner = runner
        self.last_snapshot: TreeSnapshot | None = None

    async def get_tree(self, ref: str | None = None) -> TreeSnapshot:
        tree = await self.cache.get_tree(ref)
        return await self._snapshot(tree, ref)

    async def refresh_tree(self, ref: str | None = None) -> TreeSnapshot:
        tree = await self.cache.refresh_tree(ref)
        return await self._snapshot(tree, ref)

    async def _snapshot(self, tree, ref: str | None) -> TreeSnapshot:
        built_ref = self.cache.resolve_key(ref).ref
        stats = await collect_git_stats(self.runner, built_ref)
        snapshot = TreeSnapshot(tree=tree, last_updated=_now_ms(), git_stats=stats)
        self.last_snapshot = snapshot
        return snapshot


async def tree_response(
    handler: Callable[[str | None], Awaitable[TreeSnapshot]],
    ref: str | None,
    error_message: str,
) -> dict[str, Any]:
    """
    Repository errors carry their message (status 400); anything else is
    logged and reported generically (status 500).
    """
    try:
        snapshot = await handler(ref)
    except GitRepositoryError as e:
        return {"status": 400, "error": str(e)}
    except Exception:
        logger.exception(error_message)
        return {"status": 500, "error": error_message}

    return {"status": 200, **snapshot.to_dict()}
