from __future__ import annotations

from typing import Any

from .common import clean_ref, get_service, make_runner
from .service import tree_response
from ..core.config import ServerConfig
from ..core.errors import GitRepositoryError
from ..core.refs import CURRENT_REF
from ..core.stats import collect_git_stats


async def get_tree(ref: str | None = None, *, config: ServerConfig | None = None) -> dict[str, Any]:
    """
    Tree for `ref`, or for the configured default when omitted.
    Concurrent calls for the same ref share one build.
    """
    return await tree_response(
        lambda r: get_service(config).get_tree(r),
        clean_ref(ref),
        "Failed to build repository tree",
    )


async def refresh_tree(ref: str | None = None, *, config: ServerConfig | None = None) -> dict[str, Any]:
    """
    Like get_tree, but always starts a new build.
    """
    return await tree_response(
        lambda r: get_service(config).refresh_tree(r),
        clean_ref(ref),
        "Failed to refresh repository tree",
    )


async def git_stats(root: str = ".", ref: str = CURRENT_REF) -> dict[str, Any]:
    try:
        r = make_runner(root)
    except GitRepositoryError as e:
        return {"status": 400, "error": str(e)}
    stats = await collect_git_stats(r, clean_ref(ref) or CURRENT_REF)
    return {"status": 200, "ref": ref, **stats.to_dict()}


def last_snapshot(config: ServerConfig | None = None) -> dict[str, Any] | None:
    """The most recent snapshot served, for display only."""
    snapshot = get_service(config).last_snapshot
    return snapshot.to_dict() if snapshot else None
