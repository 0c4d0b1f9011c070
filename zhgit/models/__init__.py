"""Domain models shared across zhgit."""

from zhgit.models.domain import AuthenticatedUser, CommitAnalysis, CommitRecord, PullRequest

__all__ = ["AuthenticatedUser", "CommitAnalysis", "CommitRecord", "PullRequest"]
