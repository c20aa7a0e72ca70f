from __future__ import annotations

from pathlib import Path

import pytest

from octotree_mcp.core.errors import GitRepositoryError, UnresolvableRefError, UnsupportedObjectTypeError
from octotree_mcp.core.git_runner import AsyncGitRunner
from octotree_mcp.core.refs import has_commits, resolve_ref


@pytest.mark.asyncio
async def test_resolve_commit(tmp_git_repo: Path, git, git_head: str):
    resolved = await resolve_ref(AsyncGitRunner(tmp_git_repo), "HEAD")

    assert resolved.commit_id == git_head
    assert resolved.tree_id == git(tmp_git_repo, "rev-parse", "HEAD^{tree}")


@pytest.mark.asyncio
async def test_resolve_annotated_tag(tmp_git_repo: Path, git, git_head: str):
    git(tmp_git_repo, "tag", "-a", "v1.0", "-m", "release")
    tag_object = git(tmp_git_repo, "rev-parse", "v1.0")
    assert tag_object != git_head

    resolved = await resolve_ref(AsyncGitRunner(tmp_git_repo), "v1.0")

    assert resolved.commit_id == git_head
    assert resolved.tree_id == git(tmp_git_repo, "rev-parse", "HEAD^{tree}")


@pytest.mark.asyncio
async def test_resolve_lightweight_tag(tmp_git_repo: Path, git, git_head: str):
    git(tmp_git_repo, "tag", "light")

    resolved = await resolve_ref(AsyncGitRunner(tmp_git_repo), "light")

    assert resolved.commit_id == git_head


@pytest.mark.asyncio
async def test_resolve_raw_tree_has_no_commit(tmp_git_repo: Path, git):
    tree_id = git(tmp_git_repo, "rev-parse", "HEAD^{tree}")

    resolved = await resolve_ref(AsyncGitRunner(tmp_git_repo), tree_id)

    assert resolved.tree_id == tree_id
    assert resolved.commit_id is None


@pytest.mark.asyncio
async def test_resolve_blob_is_unsupported(tmp_git_repo: Path, git):
    blob_id = git(tmp_git_repo, "rev-parse", "HEAD:README.md")

    with pytest.raises(UnsupportedObjectTypeError) as exc:
        await resolve_ref(AsyncGitRunner(tmp_git_repo), blob_id)

    assert exc.value.object_type == "blob"
    assert "blob" in str(exc.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("ref", ["does-not-exist", "0123456789abcdef0123456789abcdef01234567", "--all", ""])
async def test_resolve_unknown_ref(tmp_git_repo: Path, ref: str):
    with pytest.raises(UnresolvableRefError, match="Failed to resolve git ref"):
        await resolve_ref(AsyncGitRunner(tmp_git_repo), ref)


@pytest.mark.asyncio
async def test_resolve_head_in_empty_repo_is_unresolvable(empty_git_repo: Path):
    with pytest.raises(UnresolvableRefError):
        await resolve_ref(AsyncGitRunner(empty_git_repo), "HEAD")


@pytest.mark.asyncio
async def test_has_commits(tmp_git_repo: Path, empty_git_repo: Path):
    assert await has_commits(AsyncGitRunner(tmp_git_repo)) is True
    assert await has_commits(AsyncGitRunner(empty_git_repo)) is False


def test_unresolvable_ref_is_repository_error():
    assert issubclass(UnresolvableRefError, GitRepositoryError)
    assert issubclass(UnsupportedObjectTypeError, GitRepositoryError)


@pytest.mark.asyncio
@pytest.mark.parametrize(("target", "kind"), [("HEAD^{tree}", "tree"), ("HEAD:README.md", "blob")])
async def test_resolve_tag_of_non_commit_is_unsupported(tmp_git_repo: Path, git, target: str, kind: str):
    git(tmp_git_repo, "tag", "-a", "odd-tag", "-m", "not a commit", git(tmp_git_repo, "rev-parse", target))

    with pytest.raises(UnsupportedObjectTypeError) as exc:
        await resolve_ref(AsyncGitRunner(tmp_git_repo), "odd-tag")

    assert exc.value.object_type == kind
    assert "odd-tag" in str(exc.value)
