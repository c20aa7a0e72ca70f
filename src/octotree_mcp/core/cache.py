from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from .models import TreeNode
from .refs import CURRENT_REF
from .tree_builder import build_repository_tree


logger = logging.getLogger(__name__)


BuildFn = Callable[..., Awaitable[TreeNode]]


@dataclass(frozen=True)
class BuildRequest:
    """In-flight builds are shared only between identical requests."""

    key: str
    ref: str
    allow_fallback: bool


class TreeBuildCache:
    """
    Coalesces concurrent tree builds per reference key.

    Only in-flight builds are shared: once a build settles its entry is
    dropped, and the next `get_tree` for the key starts a fresh one.
    """

    def __init__(
        self,
        repo_path: str | Path,
        default_ref: str = CURRENT_REF,
        allow_fallback: bool = False,
        build_fn: BuildFn = build_repository_tree,
    ) -> None:
        self.repo_path = repo_path
        self.default_ref = default_ref
        self.allow_fallback = allow_fallback
        self._build_fn = build_fn
        self._in_flight: dict[BuildRequest, asyncio.Task[TreeNode]] = {}

    def resolve_key(self, ref: str | None = None) -> BuildRequest:
        """
        An explicit ref is its own key and never falls back to the working
        tree, even when it spells the same name as the default.
        """
        requested = (ref or "").strip()
        if requested:
            return BuildRequest(key=requested, ref=requested, allow_fallback=False)
        return BuildRequest(key=self.default_ref, ref=self.default_ref, allow_fallback=self.allow_fallback)

    async def get_tree(self, ref: str | None = None) -> TreeNode:
        request = self.resolve_key(ref)
        # No await between lookup and insert: atomic on the event loop.
        task = self._in_flight.get(request)
        if task is None:
            task = self._start(request)
        else:
            logger.debug("Joining in-flight build for %s", request.key)
        return await asyncio.shield(task)

    async def refresh_tree(self, ref: str | None = None) -> TreeNode:
        request = self.resolve_key(ref)
        self._in_flight.pop(request, None)
        return await asyncio.shield(self._start(request))

    def in_flight_keys(self) -> list[str]:
        return sorted(r.key for r in self._in_flight)

    def _start(self, request: BuildRequest) -> asyncio.Task[TreeNode]:
        logger.debug("Starting build for %s (fallback=%s)", request.key, request.allow_fallback)
        task = asyncio.ensure_future(
            self._build_fn(self.repo_path, request.ref, allow_fallback=request.allow_fallback)
        )
        self._in_flight[request] = task
        task.add_done_callback(lambda t: self._settle(request, t))
        return task

    def _settle(self, request: BuildRequest, task: asyncio.Task[TreeNode]) -> None:
        # A refresh may already have replaced this entry.
        if self._in_flight.get(request) is task:
            del self._in_flight[request]
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Build for %s failed: %s", request.key, task.exception())
