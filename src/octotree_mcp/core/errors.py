from __future__ import annotations


class OctotreeError(Exception):
    """Base error for the project."""


class GitRepositoryError(OctotreeError):
    """A failure the caller can act on (bad path, bad ref, failed git command)."""


class InvalidRootError(GitRepositoryError):
    pass


class RootNotDirectoryError(InvalidRootError):
    pass


class RepositoryNotFoundError(GitRepositoryError):
    pass


class UnresolvableRefError(GitRepositoryError):
    pass


class UnsupportedObjectTypeError(GitRepositoryError):
    def __init__(self, ref: str, object_type: str) -> None:
        super().__init__(f"Unsupported git object type for ref {ref}: {object_type}")
        self.ref = ref
        self.object_type = object_type


class GitPolicyError(GitRepositoryError):
    pass


class GitExecutionError(GitRepositoryError):
    pass


class ListingError(GitExecutionError):
    pass


class CommitTimestampUnavailable(OctotreeError):
    """Soft failure: the commit time could not be read. Never fatal to a build."""
