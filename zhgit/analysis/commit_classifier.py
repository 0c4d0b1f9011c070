"""Split a commit range into current and historical commits.

When ``zhgit push`` opens a pull request, the pushed range usually holds two
kinds of commits: the ones written for this change ("current") and ones that
already lived on the original branch before the integration branch was cut
("historical"). The split is decided by a branch point:

1. **naming**: the trailing ``YYYYMMDDHHmmss`` timestamp of an integration
   branch, read as local time;
2. **merge-base**: the author date of ``merge-base <target> <original>``;
3. **heuristic**: without a branch point, small ranges are all current and
   larger ones split at the first gap of more than an hour.

The result is best-effort. Clock skew, rebased or cherry-picked commits and
rewritten history can put a commit in the wrong group, so the split only
shapes the pull request description and never drives a git operation.
"""

import re
from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from zhgit.git.branch_policy import TIMESTAMP_FORMAT
from zhgit.git.inspector import RepositoryInspector
from zhgit.models.domain import CommitAnalysis, CommitRecord

log = structlog.get_logger(__name__)

HEURISTIC_ALL_CURRENT_LIMIT = 3
HEURISTIC_GAP = timedelta(hours=1)

_BRANCH_TIMESTAMP = re.compile(r"(\d{14})$")


def summarize(current: int, previous: int) -> str:
    """Human summary of a split, e.g. "5 commits in total (2 current, 3 historical)"."""
    total = current + previous
    if total == 0:
        return "No new commits"

    noun = "commit" if total == 1 else "commits"
    summary = f"{total} {noun} in total"
    if current and previous:
        return f"{summary} ({current} current, {previous} historical)"
    if current:
        return f"{summary} (all current)"
    return f"{summary} (all historical)"


def branch_timestamp(branch: str) -> datetime | None:
    """Creation time encoded at the end of an integration branch name."""
    match = _BRANCH_TIMESTAMP.search(branch)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT).astimezone()
    except ValueError:
        return None


class CommitClassifier:
    """Partition commits into current and historical groups.

    ``classify`` is pure; ``find_branch_point`` and ``analyze`` read the
    repository through a ``RepositoryInspector``.
    """

    def __init__(self, inspector: RepositoryInspector | None = None) -> None:
        self.inspector = inspector

    @staticmethod
    def classify(commits: Sequence[CommitRecord], branch_point: datetime | None) -> CommitAnalysis:
        """Split commits around a branch point.

        Args:
            commits: Commits of the range, newest first
            branch_point: Commits authored strictly after this instant are
                current; None selects the gap heuristic

        Returns:
            Analysis whose two groups together hold every input commit once
        """
        commits = list(commits)
        if not commits:
            return CommitAnalysis(summary=summarize(0, 0), branch_point=branch_point, strategy="empty")

        if branch_point is not None:
            current = [c for c in commits if c.timestamp > branch_point]
            previous = [c for c in commits if c.timestamp <= branch_point]
            strategy = "branch-point"
        else:
            current, previous = CommitClassifier._split_by_gap(commits)
            strategy = "heuristic"

        return CommitAnalysis(
            current_commits=current,
            previous_commits=previous,
            total_count=len(commits),
            summary=summarize(len(current), len(previous)),
            branch_point=branch_point,
            strategy=strategy,
        )

    @staticmethod
    def _split_by_gap(commits: list[CommitRecord]) -> tuple[list[CommitRecord], list[CommitRecord]]:
        if len(commits) <= HEURISTIC_ALL_CURRENT_LIMIT:
            return commits, []

        ordered = sorted(commits, key=lambda c: c.timestamp, reverse=True)
        for index in range(1, len(ordered)):
            if ordered[index - 1].timestamp - ordered[index].timestamp > HEURISTIC_GAP:
                return ordered[:index], ordered[index:]
        return ordered, []

    async def find_branch_point(
        self,
        working_branch: str,
        target_ref: str,
        original_branch: str,
    ) -> tuple[datetime | None, str]:
        """Locate the instant the pushed work started.

        Returns:
            (branch point, strategy) where strategy is "naming",
            "merge-base" or "heuristic" (no branch point found)
        """
        if (stamp := branch_timestamp(working_branch)) is not None:
            return stamp, "naming"

        if self.inspector is not None:
            base = await self.inspector.merge_base(target_ref, original_branch)
            if base:
                return await self.inspector.commit_timestamp(base), "merge-base"

        return None, "heuristic"

    async def analyze(
        self,
        working_branch: str,
        target_ref: str,
        original_branch: str,
        commits: Sequence[CommitRecord] | None = None,
    ) -> CommitAnalysis:
        """Read and classify the commits ``target_ref..working_branch``.

        Args:
            working_branch: Branch being pushed
            target_ref: Ref the pull request merges into (e.g. "origin/dev")
            original_branch: Branch the run started from
            commits: Pre-fetched commits of the range, newest first

        Returns:
            The analysis. If locating the branch point fails, every commit is
            reported as current (strategy "fallback").
        """
        if commits is None:
            if self.inspector is None:
                raise ValueError("commits are required when no inspector is configured")
            commits = await self.inspector.commit_range(target_ref, working_branch)
        commits = list(commits)

        if not commits:
            return self.classify(commits, None)

        try:
            branch_point, strategy = await self.find_branch_point(working_branch, target_ref, original_branch)
            analysis = self.classify(commits, branch_point)
        except Exception as e:
            log.warning("commit_analysis_degraded", working_branch=working_branch, error=str(e))
            return CommitAnalysis(
                current_commits=commits,
                previous_commits=[],
                total_count=len(commits),
                summary=summarize(len(commits), 0),
                strategy="fallback",
            )

        analysis.strategy = strategy
        log.debug(
            "commits_classified",
            strategy=strategy,
            current=len(analysis.current_commits),
            historical=len(analysis.previous_commits),
        )
        return analysis
