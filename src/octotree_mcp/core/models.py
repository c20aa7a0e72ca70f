from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


NodeKind = Literal["file", "directory"]

ROOT_PATH = "."


@dataclass(frozen=True)
class GitRunResult:
    argv: list[str]
    root: str
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool


@dataclass(frozen=True)
class ResolvedRef:
    tree_id: str
    commit_id: str | None = None


@dataclass(frozen=True)
class FileEntry:
    """One tracked file as reported by a lister.

    `modified_at_ms` is None for manifest entries; those take the build-wide
    commit time instead.
    """
    path: str
    size: int
    modified_at_ms: int | None = None


@dataclass
class TreeNode:
    id: str
    name: str
    relative_path: str
    kind: NodeKind
    size: int = 0
    modified_at_ms: int = 0
    depth: int = 0
    children: list[TreeNode] = field(default_factory=list)

    @property
    def is_directory(self) -> bool:
        return self.kind == "directory"

    def walk(self):
        """Yield this node and every descendant, depth-first, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict[str, Any]:
        # Explicit stack: git trees can nest deeper than the recursion limit.
        out = self._fields()
        stack = [(self, out)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = child._fields()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return out

    def _fields(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "relative_path": self.relative_path,
            "kind": self.kind,
            "size": self.size,
            "modified_at_ms": self.modified_at_ms,
            "depth": self.depth,
            "children": [],
        }


@dataclass(frozen=True)
class GitStats:
    total_commits: int | None = None
    latest_commit_timestamp: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_commits": self.total_commits,
            "latest_commit_timestamp": self.latest_commit_timestamp,
        }


@dataclass(frozen=True)
class TreeSnapshot:
    tree: TreeNode
    last_updated: int
    git_stats: GitStats | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree": self.tree.to_dict(),
            "last_updated": self.last_updated,
            "git_stats": self.git_stats.to_dict() if self.git_stats else None,
        }
