from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .refs import CURRENT_REF


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServerConfig:
    """
    Which repository to serve and how the default reference behaves.
    """
    repo_path: str = "."
    default_ref: str = CURRENT_REF
    allow_fallback: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ServerConfig:
        env = os.environ if env is None else env
        return cls(
            repo_path=env.get("OCTOTREE_REPO", "").strip() or ".",
            default_ref=env.get("OCTOTREE_REF", "").strip() or CURRENT_REF,
            allow_fallback=env.get("OCTOTREE_ALLOW_FALLBACK", "").strip().lower() in _TRUTHY,
        )
