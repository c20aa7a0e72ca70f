from .repo_tree import repo_tree

__all__ = ["repo_tree"]
