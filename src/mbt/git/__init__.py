from .repo import BLOB, TREE, Commit, GitRepository, TreeEntry

__all__ = ["BLOB", "TREE", "Commit", "GitRepository", "TreeEntry"]
