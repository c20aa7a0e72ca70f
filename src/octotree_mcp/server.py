from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP

from octotree_mcp.core.errors import GitRepositoryError
from octotree_mcp.resources import repo_tree
from octotree_mcp.tools import get_tree, git_stats, last_snapshot, refresh_tree

logger = logging.getLogger(__name__)

mcp = FastMCP("octotree-mcp")


@mcp.tool()
async def get_tree_tool(ref: str | None = None) -> dict:
    return await get_tree(ref)


@mcp.tool()
async def refresh_tree_tool(ref: str | None = None) -> dict:
    return await refresh_tree(ref)


@mcp.tool()
async def git_stats_tool(root: str = ".", ref: str = "HEAD") -> dict:
    return await git_stats(root=root, ref=ref)


@mcp.tool()
async def repo_tree_tool(root: str = ".", ref: str = "HEAD") -> dict:
    try:
        return await repo_tree(root=root, ref=ref)
    except GitRepositoryError as e:
        return {"status": 400, "error": str(e)}


@mcp.resource("octotree://tree/{ref}")
async def tree_resource(ref: str) -> dict:
    return await get_tree(ref)


@mcp.resource("octotree://last")
def last_snapshot_resource() -> dict:
    return last_snapshot() or {}


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("OCTOTREE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
