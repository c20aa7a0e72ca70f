from __future__ import annotations

from pathlib import Path

from .errors import InvalidRootError, RootNotDirectoryError


def resolve_root(root: str | Path) -> Path:
    """Resolve and validate root directory for local-repo operations."""
    p = Path(root).expanduser().resolve()

    if not p.exists():
        raise InvalidRootError(f"Root does not exist: {p}")
    if not p.is_dir():
        raise RootNotDirectoryError(f"Provided path is not a directory: {p}")

    return p
