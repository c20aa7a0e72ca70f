from __future__ import annotations

from ..core.models import TreeNode
from ..core.refs import CURRENT_REF
from ..core.security import resolve_root
from ..core.tree_builder import build_repository_tree


def _count_files(tree: TreeNode) -> int:
    return sum(1 for n in tree.walk() if not n.is_directory)


async def repo_tree(root: str = ".", ref: str = CURRENT_REF, *, allow_fallback: bool = False) -> dict:
    """
    Returns the annotated repository tree at a given ref, built uncached.
    """
    repo_root = resolve_root(root)
    tree = await build_repository_tree(repo_root, ref, allow_fallback=allow_fallback)

    return {
        "root": str(repo_root),
        "ref": ref,
        "file_count": _count_files(tree),
        "size": tree.size,
        "modified_at_ms": tree.modified_at_ms,
        "tree": tree.to_dict(),
    }
