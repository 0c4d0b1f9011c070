"""Read-only queries over a git working copy.

``RepositoryInspector`` answers the questions the workflows ask before they
change anything: is this a repository, is the tree clean, which branch is
checked out, which commits does a range hold. Existence checks degrade to
``False`` instead of raising; data queries raise typed errors.
"""

from datetime import datetime

import structlog

from zhgit.engine.error_classifier import ErrorClassifier
from zhgit.enums import ErrorKind
from zhgit.exceptions import CommandError, InputValidationError, error_for_kind
from zhgit.git.runner import SafeCommandRunner
from zhgit.models.domain import CommitRecord

log = structlog.get_logger(__name__)

# hash|subject|author|email|date; %x7c is git's escape for "|", which the
# runner refuses in arguments. The subject may itself contain "|".
LOG_FORMAT = "%H%x7c%s%x7c%an%x7c%ae%x7c%aI"


def parse_log_line(line: str) -> CommitRecord:
    """Parse one ``hash|subject|author|email|date`` line of ``git log`` output.

    Raises:
        ValueError: If the line does not have the expected fields
    """
    commit_hash, _, rest = line.partition("|")
    fields = rest.rsplit("|", 3)
    if not commit_hash or len(fields) != 4:
        raise ValueError(f"Unexpected git log line: {line!r}")
    subject, author, email, date = fields
    return CommitRecord(
        hash=commit_hash.strip(),
        subject=subject,
        author=author,
        email=email,
        timestamp=datetime.fromisoformat(date.strip()),
    )


class RepositoryInspector:
    """Read-only view of the repository behind a ``SafeCommandRunner``."""

    def __init__(self, runner: SafeCommandRunner, remote: str = "origin") -> None:
        self.runner = runner
        self.remote = remote

    async def is_repository(self) -> bool:
        try:
            await self.runner.run(["rev-parse", "--git-dir"])
        except (CommandError, InputValidationError):
            return False
        return True

    async def is_working_tree_clean(self) -> bool:
        try:
            status = await self.runner.run(["status", "--porcelain"])
        except CommandError as e:
            log.debug("status_failed", error=str(e))
            return False
        return status == ""

    async def current_branch(self) -> str:
        """Name of the checked-out branch ("HEAD" when detached)."""
        try:
            return await self.runner.run(["rev-parse", "--abbrev-ref", "HEAD"])
        except CommandError as e:
            raise ErrorClassifier.classify(e, "reading the current branch") from e

    async def branch_exists(self, name: str, remote: bool = False) -> bool:
        """Check whether a local branch, or its remote-tracking twin, exists."""
        ref = f"{self.remote}/{name}" if remote else name
        try:
            await self.runner.run(["rev-parse", "--verify", "--quiet", ref])
        except (CommandError, InputValidationError):
            return False
        return True

    async def remote_url(self, remote: str | None = None) -> str:
        try:
            return await self.runner.run(["remote", "get-url", remote or self.remote])
        except CommandError as e:
            raise ErrorClassifier.classify(e, "reading the remote URL", fallback=ErrorKind.CONFIG_MISSING) from e

    async def commit_range(self, base: str, head: str) -> list[CommitRecord]:
        """List the commits reachable from ``head`` but not from ``base``.

        Args:
            base: Exclusive lower end of the range (e.g. "origin/main")
            head: Inclusive upper end of the range

        Returns:
            Commits newest first

        Raises:
            RepositoryStateError: GIT_NOT_REPOSITORY outside a working copy,
                GIT_FETCH_FAILED when the range cannot be read
        """
        try:
            output = await self.runner.run(["log", f"{base}..{head}", f"--pretty=format:{LOG_FORMAT}"])
        except CommandError as e:
            if "not a git repository" in e.output.lower():
                raise ErrorClassifier.classify(e, "reading commit history") from e
            raise error_for_kind(
                ErrorKind.GIT_FETCH_FAILED,
                f"Could not read commits {base}..{head}",
                details={"original_error": e.output},
            ) from e

        commits = []
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                commits.append(parse_log_line(line))
            except ValueError as e:
                raise error_for_kind(
                    ErrorKind.GIT_FETCH_FAILED,
                    f"Could not read commits {base}..{head}: {e}",
                ) from e
        return commits

    async def merge_base(self, first: str, second: str) -> str | None:
        """Best common ancestor of two refs, None when they share no history."""
        try:
            return await self.runner.run(["merge-base", first, second]) or None
        except CommandError as e:
            log.debug("merge_base_failed", first=first, second=second, error=str(e))
            return None

    async def commit_timestamp(self, ref: str) -> datetime:
        """Author date of a commit."""
        try:
            output = await self.runner.run(["show", "-s", "--format=%aI", ref])
        except CommandError as e:
            raise ErrorClassifier.classify(e, f"reading commit {ref}") from e
        return datetime.fromisoformat(output.strip())

    async def config_value(self, key: str) -> str | None:
        """Value of a git config key, None when unset."""
        try:
            value = await self.runner.run(["config", "--get", key])
        except CommandError:
            return None
        return value or None

    async def list_branches(self, include_remote: bool = False) -> str:
        args = ["branch", "-a"] if include_remote else ["branch"]
        try:
            return await self.runner.run(args)
        except CommandError as e:
            raise ErrorClassifier.classify(e, "listing branches") from e

