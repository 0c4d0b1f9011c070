"""
Workflow orchestrator.

``WorkflowOrchestrator`` is the single entry point the CLI talks to. It owns
the shared collaborators (settings, git runner, token manager, remote
platform factory, progress reporter) and builds a fresh flow object for each
command:

- ``push``: the push state machine (``zhgit.engine.push_flow``)
- ``branch``: branch management (``zhgit.engine.branch_flow``)
- ``configure_token`` / ``clear_token``: token setup for ``zhgit config``

Example:
    >>> orchestrator = WorkflowOrchestrator(settings, token_manager=manager)
    >>> result = await orchestrator.push("dev")
    >>> print(result.pull_request.url)
"""

from collections.abc import Callable
from datetime import datetime

import structlog

from zhgit.config.settings import ZhgitSettings
from zhgit.config.store import UserRecord
from zhgit.credentials.manager import TokenManager
from zhgit.engine.branch_flow import BranchFlow
from zhgit.engine.error_classifier import ErrorClassifier
from zhgit.engine.push_flow import ProviderFactory, PushFlow
from zhgit.engine.reporter import NullReporter, ProgressReporter
from zhgit.engine.types import BranchResult, PushResult
from zhgit.enums import BranchAction, ErrorKind
from zhgit.exceptions import ConfigurationError, InputValidationError
from zhgit.git.inspector import RepositoryInspector
from zhgit.git.runner import SafeCommandRunner
from zhgit.models.domain import AuthenticatedUser
from zhgit.providers.github_rest import GitHubRestProvider

log = structlog.get_logger(__name__)

REQUIRED_SCOPE = "repo"


class WorkflowOrchestrator:
    """Coordinate the zhgit workflows.

    Attributes:
        settings: Runtime settings
        runner: Executes git commands in the working copy
        inspector: Read-only repository queries
        token_manager: Token vault and per-user records
        provider_factory: Builds a remote platform client from a token
        reporter: Receives human-facing progress messages
    """

    def __init__(
        self,
        settings: ZhgitSettings,
        token_manager: TokenManager,
        runner: SafeCommandRunner | None = None,
        provider_factory: ProviderFactory | None = None,
        reporter: ProgressReporter | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.token_manager = token_manager
        self.runner = runner or SafeCommandRunner(
            timeout=settings.command_timeout,
            max_output=settings.max_output_bytes,
        )
        self.inspector = RepositoryInspector(self.runner, remote=settings.remote_name)
        self.provider_factory = provider_factory or self._github_provider
        self.reporter: ProgressReporter = reporter or NullReporter()
        self.clock = clock

    def _github_provider(self, token: str) -> GitHubRestProvider:
        return GitHubRestProvider(
            token,
            base_url=self.settings.api_base_url,
            timeout=self.settings.api_timeout,
        )

    def push_flow(self) -> PushFlow:
        return PushFlow(
            self.runner,
            self.token_manager,
            self.provider_factory,
            inspector=self.inspector,
            reporter=self.reporter,
            settings=self.settings,
            clock=self.clock,
        )

    def branch_flow(self) -> BranchFlow:
        return BranchFlow(
            self.runner,
            inspector=self.inspector,
            reporter=self.reporter,
            settings=self.settings,
            clock=self.clock,
        )

    async def push(self, target_branch: str) -> PushResult:
        """Run ``zhgit push <target_branch>``."""
        log.info("push_started", target=target_branch)
        result = await self.push_flow().run(target_branch)
        log.info("push_completed", target=target_branch, pull_request=result.pull_request.number)
        return result

    async def branch(
        self,
        action: BranchAction | str,
        name: str | None = None,
        base: str | None = None,
        force: bool = False,
        include_remote: bool = False,
    ) -> BranchResult:
        """Run ``zhgit branch <action> [name]``."""
        return await self.branch_flow().run(
            action,
            name=name,
            base=base,
            force=force,
            include_remote=include_remote,
        )

    async def _git_username(self) -> str:
        username = await self.inspector.config_value("user.name")
        if not username:
            raise ConfigurationError("git user.name is not configured", kind=ErrorKind.CONFIG_MISSING)
        return username

    async def configure_token(self, token: str) -> tuple[AuthenticatedUser, UserRecord]:
        """Validate a GitHub token and store it for the current git user.

        The token is checked against the API before anything is stored. A
        token without the ``repo`` scope is stored with a warning, since
        fine-grained tokens report no scopes at all.

        Returns:
            The token owner and the updated user record

        Raises:
            InputValidationError: If the token is empty
            ConfigurationError: If git user.name is not configured
            AuthenticationError: If GitHub rejects the token
        """
        token = token.strip()
        if not token:
            raise InputValidationError("The GitHub token must not be empty", kind=ErrorKind.INVALID_INPUT)

        username = await self._git_username()

        self.reporter.start("Validating GitHub token")
        provider = self.provider_factory(token)
        try:
            user = await provider.get_authenticated_user()
        except Exception as e:
            self.reporter.fail("GitHub rejected the token")
            raise ErrorClassifier.classify(e, "validating the GitHub token", fallback=ErrorKind.AUTH_TOKEN_INVALID) from e
        finally:
            await provider.close()
        self.reporter.succeed(f"Token belongs to GitHub user {user.login}")

        if user.scopes and REQUIRED_SCOPE not in user.scopes:
            self.reporter.warn(
                f"The token lacks the '{REQUIRED_SCOPE}' scope; creating pull requests may fail "
                f"(granted: {', '.join(user.scopes)})"
            )

        email = await self.inspector.config_value("user.email")
        record = self.token_manager.save_token(username, token, user, email=email)
        self.reporter.succeed(f"Token stored for {username}")
        return user, record

    async def clear_token(self) -> bool:
        """Delete the stored token of the current git user."""
        username = await self._git_username()
        deleted = self.token_manager.clear_token(username)
        if deleted:
            self.reporter.succeed(f"Token removed for {username}")
        else:
            self.reporter.info(f"No token was stored for {username}")
        return deleted

    async def show_config(self) -> tuple[str, UserRecord | None]:
        """Return the current git user and their non-sensitive record."""
        username = await self._git_username()
        return username, self.token_manager.store.get_user(username)
