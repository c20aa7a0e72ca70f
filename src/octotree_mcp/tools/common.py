from __future__ import annotations

from ..core.cache import TreeBuildCache
from ..core.config import ServerConfig
from ..core.git_runner import AsyncGitRunner, GitRunnerConfig
from ..core.security import resolve_root
from .service import TreeService


_DEFAULT_CFG = GitRunnerConfig()

_services: dict[ServerConfig, TreeService] = {}


def make_runner(root: str = ".") -> AsyncGitRunner:
    return AsyncGitRunner(root=resolve_root(root), config=_DEFAULT_CFG)


def get_service(config: ServerConfig | None = None) -> TreeService:
    """One service (and so one coalescing cache) per distinct configuration."""
    config = config or ServerConfig.from_env()
    service = _services.get(config)
    if service is None:
        cache = TreeBuildCache(
            config.repo_path,
            default_ref=config.default_ref,
            allow_fallback=config.allow_fallback,
        )
        service = TreeService(cache, make_runner(config.repo_path))
        _services[config] = service
    return service


def clean_ref(ref: str | None) -> str | None:
    s = (ref or "").strip()
    return s or None
