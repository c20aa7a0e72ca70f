from .tree_tools import (
    get_tree,
    refresh_tree,
    git_stats,
    last_snapshot,
)

__all__ = [
    "get_tree",
    "refresh_tree",
    "git_stats",
    "last_snapshot",
]
