"""
Domain models for zhgit.

These are the normalized internal representations of commits, commit
analyses and remote platform objects, independent of how they were read
(git log output or the GitHub API).

Example:
    Creating a commit record::

        commit = CommitRecord(
            hash="3f2a9c1e0b7d4a6f8e5c2b1a0d9f8e7c6b5a4d3e",
            subject="feat: add login form",
            author="Alice",
            email="alice@example.com",
            timestamp=datetime(2024, 1, 1, 12, 0, tzinfo=UTC),
        )
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CommitRecord:
    """A single commit as read from the version-control log.

    Attributes:
        hash: Full 40-character commit hash
        subject: First line of the commit message
        author: Author name
        email: Author email
        timestamp: Author date, timezone-aware
    """

    hash: str
    subject: str
    author: str
    email: str
    timestamp: datetime

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass
class CommitAnalysis:
    """A commit range partitioned into current and historical commits.

    ``current_commits`` and ``previous_commits`` together hold every commit
    of the analyzed range exactly once.

    Attributes:
        current_commits: Commits authored for this push
        previous_commits: Commits that were already on the branch
        total_count: Number of commits in the range
        summary: One-line human summary of the split
        branch_point: Instant separating the two groups, when one was found
        strategy: How the split was decided ("naming", "merge-base",
            "branch-point" for a caller-supplied point, "heuristic",
            "fallback" or "empty")
    """

    current_commits: list[CommitRecord] = field(default_factory=list)
    previous_commits: list[CommitRecord] = field(default_factory=list)
    total_count: int = 0
    summary: str = ""
    branch_point: datetime | None = None
    strategy: str = "empty"

    @property
    def all_commits(self) -> list[CommitRecord]:
        return [*self.current_commits, *self.previous_commits]


@dataclass(frozen=True)
class PullRequest:
    """Pull request created on the remote platform."""

    number: int
    title: str
    url: str
    head: str
    base: str


@dataclass(frozen=True)
class AuthenticatedUser:
    """Owner of an API token.

    Attributes:
        login: Platform username
        email: Public email, if any
        scopes: OAuth scopes granted to the token (empty for fine-grained tokens)
    """

    login: str
    email: str | None = None
    scopes: tuple[str, ...] = ()
