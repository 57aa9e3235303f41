from .git import GitCommitResolver, GitError, head_commit

__all__ = ["GitCommitResolver", "GitError", "head_commit"]
