"""
Base class for git workflows.

``GitWorkflow`` holds the collaborators every workflow needs (command
runner, repository inspector, progress reporter, settings) and the git steps
they share: running a mutating command with classification at the boundary,
and fetching or pushing with network retries.
"""

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog

from zhgit.config.settings import ZhgitSettings
from zhgit.engine.error_classifier import ErrorClassifier
from zhgit.engine.reporter import NullReporter, ProgressReporter
from zhgit.enums import ErrorKind
from zhgit.exceptions import CommandError, RepositoryStateError, ZhgitError
from zhgit.git.inspector import RepositoryInspector
from zhgit.git.runner import SafeCommandRunner
from zhgit.utils.retry import with_retry

log = structlog.get_logger(__name__)


class GitWorkflow:
    """Shared collaborators and git steps of the push and branch flows.

    Attributes:
        runner: Executes git commands
        inspector: Read-only repository queries
        reporter: Receives human-facing progress messages
        settings: Timeouts, retry policy, remote name
        clock: Returns the local time used in generated branch names
    """

    def __init__(
        self,
        runner: SafeCommandRunner,
        inspector: RepositoryInspector | None = None,
        reporter: ProgressReporter | None = None,
        settings: ZhgitSettings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings or ZhgitSettings()
        self.runner = runner
        self.inspector = inspector or RepositoryInspector(runner, remote=self.settings.remote_name)
        self.reporter: ProgressReporter = reporter or NullReporter()
        self.clock = clock

    @property
    def remote(self) -> str:
        return self.settings.remote_name

    async def require_repository(self) -> None:
        """Raise GIT_NOT_REPOSITORY unless the working directory is a repository."""
        if not await self.inspector.is_repository():
            raise RepositoryStateError(
                "The current directory is not a git repository",
                kind=ErrorKind.GIT_NOT_REPOSITORY,
            )

    async def git(
        self,
        args: Sequence[str],
        context: str,
        fallback: ErrorKind = ErrorKind.UNKNOWN_ERROR,
    ) -> str:
        """Run a git command, classifying a failure exactly once."""
        try:
            return await self.runner.run(args)
        except CommandError as e:
            raise ErrorClassifier.classify(e, context, fallback=fallback) from e

    async def git_with_retry(
        self,
        args: Sequence[str],
        context: str,
        fallback: ErrorKind,
    ) -> str:
        """Run a network-bound git command under the retry policy."""
        run = with_retry(
            self.runner.run,
            max_attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay,
        )
        try:
            return await run(args)
        except CommandError as e:
            raise ErrorClassifier.classify(e, context, fallback=fallback) from e

    async def fetch(self, branch: str) -> None:
        self.reporter.start(f"Fetching {self.remote}/{branch}")
        try:
            await self.git_with_retry(
                ["fetch", self.remote, branch],
                f"fetching {self.remote}/{branch}",
                fallback=ErrorKind.GIT_FETCH_FAILED,
            )
        except ZhgitError:
            self.reporter.fail(f"Could not fetch {self.remote}/{branch}")
            raise
        self.reporter.succeed(f"Fetched {self.remote}/{branch}")
