"""
Push workflow state machine.

``zhgit push <target>`` moves through these states:

    INIT
    → VALIDATE_PRECONDITIONS     repository, target whitelist, clean tree,
                                 git user.name, stored token
    → DETERMINE_BRANCH_NAME      reuse an integration branch or name a new one
    → CREATE_WORKING_BRANCH      git checkout -b <working>
    → FETCH_TARGET               git fetch origin <target>      (retried)
    → MERGE_TARGET               git merge origin/<target>
    → PUSH                       git push -u origin <working>   (retried)
    → CREATE_PULL_REQUEST        classify commits, open the pull request
    → RESTORE_ORIGINAL_BRANCH    git checkout <original>        (best-effort)
    → DONE

Any failure moves the run to FAILED. Nothing in the repository changes
before the preconditions pass. A merge conflict leaves the user on the
working branch to resolve it; every other failure switches back to the
original branch before the error propagates. A failed pull request never
undoes the push.
"""

from collections.abc import Callable
from datetime import datetime

import structlog

from zhgit.analysis.commit_classifier import CommitClassifier
from zhgit.analysis.pr_composer import PullRequestComposer
from zhgit.config.settings import ZhgitSettings
from zhgit.credentials.manager import TokenManager
from zhgit.engine.base import GitWorkflow
from zhgit.engine.context import WorkflowContext
from zhgit.engine.error_classifier import ErrorClassifier
from zhgit.engine.reporter import ProgressReporter
from zhgit.engine.types import PushResult, PushState
from zhgit.enums import ErrorKind
from zhgit.exceptions import (
    ConfigurationError,
    InputValidationError,
    MergeConflictError,
    RepositoryStateError,
    ZhgitError,
)
from zhgit.git.branch_policy import BranchNamePolicy
from zhgit.git.inspector import RepositoryInspector
from zhgit.git.models import RepositoryInfo
from zhgit.git.parser import RemoteUrlParser
from zhgit.git.runner import SafeCommandRunner
from zhgit.models.domain import CommitAnalysis, PullRequest
from zhgit.providers.base import RemotePlatform

log = structlog.get_logger(__name__)

ProviderFactory = Callable[[str], RemotePlatform]


class PushFlow(GitWorkflow):
    """One run of ``zhgit push``.

    A flow object is single-use: ``states`` records every state the run
    visited, in order.
    """

    def __init__(
        self,
        runner: SafeCommandRunner,
        token_manager: TokenManager,
        provider_factory: ProviderFactory,
        inspector: RepositoryInspector | None = None,
        reporter: ProgressReporter | None = None,
        settings: ZhgitSettings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(runner, inspector, reporter, settings, clock)
        self.token_manager = token_manager
        self.provider_factory = provider_factory
        self.commit_classifier = CommitClassifier(self.inspector)
        self.states: list[PushState] = []
        self.context: WorkflowContext | None = None
        self._left_original_branch = False

    @property
    def state(self) -> PushState | None:
        return self.states[-1] if self.states else None

    def _enter(self, state: PushState) -> None:
        self.states.append(state)
        log.debug("push_state", state=state.value)

    async def run(self, target_branch: str) -> PushResult:
        """Push the current work to a new integration branch and open a pull request.

        Args:
            target_branch: Branch the pull request targets

        Returns:
            The result of the run

        Raises:
            MergeConflictError: The target could not be merged cleanly; the
                user is left on the working branch
            ZhgitError: Any other failure, after the original branch has
                been checked out again
        """
        self._enter(PushState.INIT)
        try:
            return await self._run(target_branch)
        except MergeConflictError:
            self._enter(PushState.FAILED)
            raise
        except ZhgitError:
            self._enter(PushState.FAILED)
            await self._restore_original_branch()
            raise
        except Exception as e:
            self._enter(PushState.FAILED)
            await self._restore_original_branch()
            raise ErrorClassifier.classify(e, "zhgit push") from e

    async def _run(self, target_branch: str) -> PushResult:
        self._enter(PushState.VALIDATE_PRECONDITIONS)
        context, token = await self._validate_preconditions(target_branch)
        self.context = context

        self._enter(PushState.DETERMINE_BRANCH_NAME)
        await self._determine_branch_name(context)

        if not context.is_already_merge_branch:
            self._enter(PushState.CREATE_WORKING_BRANCH)
            await self._create_working_branch(context)

            self._enter(PushState.FETCH_TARGET)
            await self.fetch(context.target_branch)

            self._enter(PushState.MERGE_TARGET)
            await self._merge_target(context)

        self._enter(PushState.PUSH)
        await self._push(context)

        self._enter(PushState.CREATE_PULL_REQUEST)
        pull_request, analysis = await self._create_pull_request(context, token)

        self._enter(PushState.RESTORE_ORIGINAL_BRANCH)
        await self._restore_original_branch()

        self._enter(PushState.DONE)
        self._touch_user(context.username)
        return PushResult(
            context=context,
            pull_request=pull_request,
            analysis=analysis,
            states=list(self.states),
        )

    async def _validate_preconditions(self, target_branch: str) -> tuple[WorkflowContext, str]:
        await self.require_repository()

        allowed = self.settings.allowed_targets
        if target_branch not in allowed:
            raise InputValidationError(
                f"Target branch must be one of {', '.join(allowed)} (got '{target_branch}')",
                kind=ErrorKind.INVALID_INPUT,
                details={"target_branch": target_branch},
            )

        if not await self.inspector.is_working_tree_clean():
            raise RepositoryStateError(
                "The working tree has uncommitted changes",
                kind=ErrorKind.GIT_DIRTY_WORKING_DIR,
            )

        username = await self.inspector.config_value("user.name")
        if not username:
            raise ConfigurationError("git user.name is not configured", kind=ErrorKind.CONFIG_MISSING)

        token = self.token_manager.require_token(username)

        original_branch = await self.inspector.current_branch()
        if original_branch == "HEAD":
            raise RepositoryStateError(
                "HEAD is detached; check out a branch before pushing",
                kind=ErrorKind.GIT_BRANCH_NOT_EXISTS,
            )

        log.info("push_preconditions_passed", username=username, branch=original_branch, target=target_branch)
        return (
            WorkflowContext(
                original_branch=original_branch,
                target_branch=target_branch,
                username=username,
            ),
            token,
        )

    async def _determine_branch_name(self, context: WorkflowContext) -> None:
        if BranchNamePolicy.is_merge_branch(context.original_branch, context.target_branch):
            context.is_already_merge_branch = True
            context.working_branch = context.original_branch
            self.reporter.info(f"Already on integration branch {context.working_branch}; pushing it as is")
            return

        name = BranchNamePolicy.working_branch_name(
            context.username,
            context.original_branch,
            context.target_branch,
            self.clock(),
        )
        if await self.inspector.branch_exists(name):
            raise RepositoryStateError(
                f"Branch '{name}' already exists",
                kind=ErrorKind.GIT_BRANCH_EXISTS,
                details={"branch": name},
            )
        context.working_branch = name

    async def _create_working_branch(self, context: WorkflowContext) -> None:
        branch = context.pushed_branch
        self.reporter.start(f"Creating branch {branch}")
        await self.git(["checkout", "-b", branch], f"creating branch {branch}")
        self._left_original_branch = True
        self.reporter.succeed(f"Switched to new branch {branch}")

    async def _merge_target(self, context: WorkflowContext) -> None:
        source = f"{self.remote}/{context.target_branch}"
        self.reporter.start(f"Merging {source}")
        try:
            await self.git(["merge", "--no-edit", source], f"merging {source}")
        except ZhgitError as e:
            if e.kind is not ErrorKind.GIT_MERGE_CONFLICT:
                self.reporter.fail(f"Could not merge {source}")
                raise
            self.reporter.fail(f"Merging {source} produced conflicts")
            raise MergeConflictError(context.pushed_branch, context.target_branch, details=e.details) from e
        self.reporter.succeed(f"Merged {source}")

    async def _push(self, context: WorkflowContext) -> None:
        branch = context.pushed_branch
        self.reporter.start(f"Pushing {branch} to {self.remote}")
        try:
            await self.git_with_retry(
                ["push", "-u", self.remote, branch],
                f"pushing {branch}",
                fallback=ErrorKind.GIT_PUSH_FAILED,
            )
        except ZhgitError:
            self.reporter.fail(f"Could not push {branch}")
            raise
        self.reporter.succeed(f"Pushed {branch}")

    async def _create_pull_request(self, context: WorkflowContext, token: str) -> tuple[PullRequest, CommitAnalysis]:
        self.reporter.start("Creating pull request")
        head = context.pushed_branch
        base = context.target_branch
        provider = self.provider_factory(token)

        try:
            url = await self.inspector.remote_url(self.remote)
            repository = RemoteUrlParser(url).to_repository_info(self.remote)
            analysis = await self._analyze_commits(context, provider, repository)

            title = PullRequestComposer.compose_title(analysis, head, base)
            body = PullRequestComposer.compose_body(analysis, head, base)
            try:
                pull_request = await provider.create_pull_request(
                    repository.owner,
                    repository.repo,
                    title=title,
                    body=body,
                    head=head,
                    base=base,
                )
            except Exception as e:
                raise ErrorClassifier.classify(e, "creating the pull request") from e
        except ZhgitError:
            self.reporter.fail("Could not create the pull request; the branch was pushed")
            raise
        finally:
            await provider.close()

        self.reporter.succeed(f"Pull request #{pull_request.number} created: {pull_request.url}")
        log.info("pull_request_created", number=pull_request.number, url=pull_request.url)
        return pull_request, analysis

    async def _analyze_commits(
        self,
        context: WorkflowContext,
        provider: RemotePlatform,
        repository: RepositoryInfo,
    ) -> CommitAnalysis:
        head = context.pushed_branch
        target_ref = f"{self.remote}/{context.target_branch}"
        try:
            commits = await self.inspector.commit_range(target_ref, head)
        except ZhgitError as e:
            if e.kind is not ErrorKind.GIT_FETCH_FAILED:
                raise
            log.warning("local_commit_range_unavailable", target_ref=target_ref, head=head)
            try:
                commits = await provider.compare_commits(repository.owner, repository.repo, context.target_branch, head)
            except Exception as remote_error:
                raise ErrorClassifier.classify(remote_error, "comparing commits") from remote_error

        return await self.commit_classifier.analyze(head, target_ref, context.original_branch, commits=commits)

    async def _restore_original_branch(self) -> None:
        context = self.context
        if context is None or not self._left_original_branch:
            return

        try:
            await self.runner.run(["checkout", context.original_branch])
        except ZhgitError as e:
            log.warning("restore_branch_failed", branch=context.original_branch, error=str(e))
            self.reporter.warn(
                f"Could not switch back to {context.original_branch}; run: git checkout {context.original_branch}"
            )
            return

        self._left_original_branch = False
        self.reporter.info(f"Switched back to {context.original_branch}")

    def _touch_user(self, username: str) -> None:
        try:
            self.token_manager.touch(username)
        except ZhgitError as e:
            log.warning("user_record_not_updated", username=username, error=str(e))
