"""Tests for zhgit.engine.push_flow.

Covers:
- The successful state sequence
- Reusing an integration branch
- Each precondition, none of which may change the repository
- Merge conflicts (no push, no restore)
- Retried fetch and push
- Pull request failures (branch stays pushed, original branch restored)
"""

from datetime import UTC, datetime

import pytest

from zhgit.engine.push_flow import PushFlow
from zhgit.engine.types import PushState
from zhgit.enums import ErrorKind
from zhgit.exceptions import CommandError, InvalidGitUrlError, MergeConflictError, ZhgitError
from zhgit.git.inspector import LOG_FORMAT

NOW = datetime(2024, 3, 15, 9, 30, 0)
WORKING = "alice-push-feature-x-to-dev-20240315093000"
REMOTE_URL = "git@github.com:octo/widgets.git"

FULL_RUN = [
    PushState.INIT,
    PushState.VALIDATE_PRECONDITIONS,
    PushState.DETERMINE_BRANCH_NAME,
    PushState.CREATE_WORKING_BRANCH,
    PushState.FETCH_TARGET,
    PushState.MERGE_TARGET,
    PushState.PUSH,
    PushState.CREATE_PULL_REQUEST,
    PushState.RESTORE_ORIGINAL_BRANCH,
    PushState.DONE,
]

MUTATING = ("checkout", "fetch", "merge", "push", "branch")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def build_flow(fake_git, token_manager, mock_platform, reporter, settings):
    """Factory for push flows over the fake repository."""
    fake_git.on("remote", "get-url", "origin", returns=REMOTE_URL)

    def _build(provider_factory=None) -> PushFlow:
        return PushFlow(
            fake_git,
            token_manager,
            provider_factory or (lambda token: mock_platform),
            reporter=reporter,
            settings=settings,
            clock=lambda: NOW,
        )

    return _build


@pytest.fixture
def flow(build_flow, stored_token) -> PushFlow:
    """Push flow for a user with a validated token."""
    return build_flow()


def mutating_calls(fake_git) -> list[list[str]]:
    return [call for call in fake_git.calls if call[0] in MUTATING]


class TestSuccessfulPush:
    """Tests for a run that opens a pull request."""

    @pytest.mark.asyncio
    async def test_visits_every_state_in_order(self, flow) -> None:
        """A fresh push walks the full state sequence."""
        result = await flow.run("dev")

        assert result.states == FULL_RUN
        assert flow.state is PushState.DONE

    @pytest.mark.asyncio
    async def test_git_commands(self, flow, fake_git) -> None:
        """The working branch is cut, merged with the target and pushed."""
        await flow.run("dev")

        assert mutating_calls(fake_git) == [
            ["checkout", "-b", WORKING],
            ["fetch", "origin", "dev"],
            ["merge", "--no-edit", "origin/dev"],
            ["push", "-u", "origin", WORKING],
            ["checkout", "feature-x"],
        ]
        assert fake_git.current_branch == "feature-x"
        assert WORKING in fake_git.remote_branches

    @pytest.mark.asyncio
    async def test_pull_request(self, flow, mock_platform) -> None:
        """The pull request goes from the working branch to the target."""
        result = await flow.run("dev")

        kwargs = mock_platform.create_pull_request.await_args.kwargs
        args = mock_platform.create_pull_request.await_args.args
        assert args == ("octo", "widgets")
        assert kwargs["head"] == WORKING
        assert kwargs["base"] == "dev"
        assert "# Pull request: " in kwargs["body"]
        assert result.pull_request.number == 7
        assert result.pull_request.url == "https://github.com/octo/widgets/pull/7"
        assert result.context.working_branch == WORKING
        assert result.context.original_branch == "feature-x"
        mock_platform.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_analysis_uses_branch_timestamp(self, flow, fake_git) -> None:
        """Commits are split around the time encoded in the working branch."""
        created = NOW.astimezone()
        lines = [
            f"{'b' * 40}|feat: new work|Alice|alice@example.com|{created.replace(minute=29).isoformat()}",
            f"{'a' * 40}|chore: older|Alice|alice@example.com|2024-03-01T08:00:00+00:00",
        ]
        # A commit authored a minute before the branch was cut is historical
        fake_git.on("log", f"origin/dev..{WORKING}", f"--pretty=format:{LOG_FORMAT}", returns="\n".join(lines))

        result = await flow.run("dev")

        assert result.analysis.strategy == "naming"
        assert result.analysis.total_count == 2
        assert result.analysis.previous_commits and not result.analysis.current_commits
        assert result.pull_request.title == f"Merge 2 commit(s) from {WORKING} → dev"

    @pytest.mark.asyncio
    async def test_updates_last_used(self, flow, config_store) -> None:
        """A successful push refreshes the user's record."""
        await flow.run("dev")

        record = config_store.get_user("alice")
        assert record is not None
        assert record.last_used is not None
        assert record.last_used <= datetime.now(UTC)

    @pytest.mark.asyncio
    async def test_progress_messages(self, flow, reporter) -> None:
        """Every step reports its outcome."""
        await flow.run("dev")

        succeeded = reporter.messages("succeed")
        assert f"Pushed {WORKING}" in succeeded
        assert any(message.startswith("Pull request #7 created") for message in succeeded)
        assert "Switched back to feature-x" in reporter.messages("info")
        assert reporter.messages("fail") == []


class TestExistingIntegrationBranch:
    """Tests for runs started on an integration branch."""

    @pytest.mark.asyncio
    async def test_skips_branch_creation(self, flow, fake_git) -> None:
        """An integration branch for the same target is pushed as is."""
        existing = "alice-push-feature-x-to-dev-20240301120000"
        fake_git.branches.add(existing)
        fake_git.current_branch = existing

        result = await flow.run("dev")

        assert result.states == [
            PushState.INIT,
            PushState.VALIDATE_PRECONDITIONS,
            PushState.DETERMINE_BRANCH_NAME,
            PushState.PUSH,
            PushState.CREATE_PULL_REQUEST,
            PushState.RESTORE_ORIGINAL_BRANCH,
            PushState.DONE,
        ]
        assert mutating_calls(fake_git) == [["push", "-u", "origin", existing]]
        assert result.context.is_already_merge_branch is True
        assert result.pull_request.head == existing

    @pytest.mark.asyncio
    async def test_other_target_creates_new_branch(self, flow, fake_git) -> None:
        """An integration branch for another target is treated as ordinary."""
        existing = "alice-push-feature-x-to-main-20240301120000"
        fake_git.branches.add(existing)
        fake_git.current_branch = existing

        result = await flow.run("dev")

        assert PushState.CREATE_WORKING_BRANCH in result.states
        assert result.context.working_branch == f"alice-push-{existing}-to-dev-20240315093000"


class TestPreconditions:
    """Each failed precondition stops the run before anything changes."""

    async def assert_rejected(self, flow, fake_git, target: str, kind: ErrorKind) -> None:
        with pytest.raises(ZhgitError) as exc_info:
            await flow.run(target)

        assert exc_info.value.kind is kind
        assert flow.states == [PushState.INIT, PushState.VALIDATE_PRECONDITIONS, PushState.FAILED]
        assert mutating_calls(fake_git) == []

    @pytest.mark.asyncio
    async def test_not_a_repository(self, flow, fake_git, git_error) -> None:
        """Outside a repository nothing else is checked."""
        fake_git.on("rev-parse", "--git-dir", raises=git_error("fatal: not a git repository"))
        await self.assert_rejected(flow, fake_git, "feature", ErrorKind.GIT_NOT_REPOSITORY)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["feature", "master", "DEV", ""])
    async def test_target_not_allowed(self, flow, fake_git, target: str) -> None:
        """Only main, dev and release may be targeted."""
        await self.assert_rejected(flow, fake_git, target, ErrorKind.INVALID_INPUT)

    @pytest.mark.asyncio
    async def test_dirty_working_tree(self, flow, fake_git) -> None:
        """Uncommitted changes block the push."""
        fake_git.on("status", "--porcelain", returns=" M app.py")
        await self.assert_rejected(flow, fake_git, "dev", ErrorKind.GIT_DIRTY_WORKING_DIR)

    @pytest.mark.asyncio
    async def test_missing_user_name(self, flow, fake_git) -> None:
        """git user.name must be configured."""
        del fake_git.config["user.name"]
        await self.assert_rejected(flow, fake_git, "dev", ErrorKind.CONFIG_MISSING)

    @pytest.mark.asyncio
    async def test_missing_token(self, build_flow, fake_git) -> None:
        """A user without a stored token cannot push."""
        await self.assert_rejected(build_flow(), fake_git, "dev", ErrorKind.AUTH_TOKEN_MISSING)

    @pytest.mark.asyncio
    async def test_unvalidated_token(self, build_flow, fake_git, vault, config_store) -> None:
        """A token in the vault without a validated record is not used."""
        vault.set("zhgit", "alice", "ghp_" + "b" * 36)
        config_store.update_user("alice", has_token=True, token_validated=False)

        await self.assert_rejected(build_flow(), fake_git, "dev", ErrorKind.AUTH_TOKEN_MISSING)

    @pytest.mark.asyncio
    async def test_detached_head(self, flow, fake_git) -> None:
        """A detached HEAD has no branch to push."""
        fake_git.current_branch = "HEAD"
        await self.assert_rejected(flow, fake_git, "dev", ErrorKind.GIT_BRANCH_NOT_EXISTS)


class TestBranchNameCollision:
    """Tests for an already existing working branch."""

    @pytest.mark.asyncio
    async def test_existing_working_branch(self, flow, fake_git) -> None:
        """The run stops when the generated name is taken."""
        fake_git.branches.add(WORKING)

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.GIT_BRANCH_EXISTS
        assert mutating_calls(fake_git) == []
        assert flow.states[-2:] == [PushState.DETERMINE_BRANCH_NAME, PushState.FAILED]


class TestMergeConflict:
    """Tests for a conflicting merge of the target."""

    @pytest.fixture
    def conflicting(self, flow, fake_git, git_error) -> PushFlow:
        fake_git.on(
            "merge",
            "--no-edit",
            "origin/dev",
            raises=git_error(
                "Automatic merge failed; fix conflicts and then commit the result.",
                ["merge", "--no-edit", "origin/dev"],
                stdout="CONFLICT (content): Merge conflict in app.py",
            ),
        )
        return flow

    @pytest.mark.asyncio
    async def test_raises_merge_conflict(self, conflicting) -> None:
        """The conflict carries the resolution steps."""
        with pytest.raises(MergeConflictError) as exc_info:
            await conflicting.run("dev")

        error = exc_info.value
        assert error.kind is ErrorKind.GIT_MERGE_CONFLICT
        assert error.working_branch == WORKING
        assert error.target_branch == "dev"
        assert error.resolution_steps[-1] == "zhgit push dev"

    @pytest.mark.asyncio
    async def test_nothing_is_pushed(self, conflicting, fake_git, mock_platform) -> None:
        """A conflicted merge is never pushed or proposed."""
        with pytest.raises(MergeConflictError):
            await conflicting.run("dev")

        assert fake_git.commands("push") == []
        mock_platform.create_pull_request.assert_not_awaited()
        assert conflicting.states[-2:] == [PushState.MERGE_TARGET, PushState.FAILED]

    @pytest.mark.asyncio
    async def test_user_stays_on_working_branch(self, conflicting, fake_git) -> None:
        """The original branch is not restored so the conflict can be resolved."""
        with pytest.raises(MergeConflictError):
            await conflicting.run("dev")

        assert fake_git.current_branch == WORKING
        assert fake_git.commands("checkout") == [["checkout", "-b", WORKING]]


class TestNetworkSteps:
    """Tests for fetch and push failures."""

    @pytest.mark.asyncio
    async def test_fetch_retried_then_fails(self, flow, fake_git, git_error) -> None:
        """A persistent network failure is retried, then restored and reported."""
        fake_git.on(
            "fetch",
            "origin",
            "dev",
            raises=git_error(
                "fatal: unable to access 'https://github.com/octo/widgets/': Could not resolve host: github.com",
                ["fetch", "origin", "dev"],
                returncode=128,
            ),
        )

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.NETWORK_CONNECTION_FAILED
        assert len(fake_git.commands("fetch")) == 3
        assert fake_git.current_branch == "feature-x"
        assert flow.states[-2:] == [PushState.FETCH_TARGET, PushState.FAILED]

    @pytest.mark.asyncio
    async def test_missing_target_on_remote(self, flow, fake_git, git_error) -> None:
        """A fetch rejected by the remote is not retried."""
        fake_git.on(
            "fetch",
            "origin",
            "dev",
            raises=git_error("fatal: couldn't find remote ref dev", ["fetch", "origin", "dev"], returncode=128),
        )

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.GIT_FETCH_FAILED
        assert len(fake_git.commands("fetch")) == 1

    @pytest.mark.asyncio
    async def test_push_succeeds_after_timeout(self, flow, fake_git) -> None:
        """A transient push failure is retried."""
        fake_git.on(
            "push",
            "-u",
            "origin",
            WORKING,
            raises=CommandError("git push timed out after 30s", args=["push", "-u", "origin", WORKING]),
        )
        fake_git.on("push", "-u", "origin", WORKING, returns="")

        result = await flow.run("dev")

        assert len(fake_git.commands("push")) == 2
        assert result.states[-1] is PushState.DONE

    @pytest.mark.asyncio
    async def test_push_rejected(self, flow, fake_git, git_error) -> None:
        """A rejected push fails with GIT_PUSH_FAILED and restores the branch."""
        fake_git.on(
            "push",
            "-u",
            "origin",
            WORKING,
            raises=git_error(
                " ! [remote rejected] HEAD -> main (protected branch hook declined)\n"
                "error: failed to push some refs to 'github.com:octo/widgets.git'",
                ["push", "-u", "origin", WORKING],
            ),
        )

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.GIT_PUSH_FAILED
        assert len(fake_git.commands("push")) == 1
        assert fake_git.current_branch == "feature-x"


class TestPullRequestFailures:
    """Tests for failures after the push."""

    @pytest.mark.asyncio
    async def test_pull_request_rejected(self, flow, fake_git, mock_platform, reporter) -> None:
        """The pushed branch stays on the remote; the user is switched back."""
        mock_platform.create_pull_request.side_effect = RuntimeError("403 Resource not accessible by integration")

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.AUTH_PERMISSION_DENIED
        assert fake_git.commands("push") == [["push", "-u", "origin", WORKING]]
        assert fake_git.commands("branch") == []
        assert WORKING in fake_git.remote_branches
        assert fake_git.current_branch == "feature-x"
        assert flow.states[-2:] == [PushState.CREATE_PULL_REQUEST, PushState.FAILED]
        assert any("the branch was pushed" in message for message in reporter.messages("fail"))
        mock_platform.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unparseable_remote(self, flow, fake_git) -> None:
        """A remote URL that names no repository is a configuration error."""
        fake_git.on("remote", "get-url", "origin", returns="file:///srv/repo")

        with pytest.raises(InvalidGitUrlError):
            await flow.run("dev")

        assert fake_git.current_branch == "feature-x"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_classified(self, build_flow, stored_token, fake_git) -> None:
        """Untyped failures are classified once at the boundary."""

        def broken_factory(token: str):
            raise RuntimeError("provider exploded")

        flow = build_flow(provider_factory=broken_factory)

        with pytest.raises(ZhgitError) as exc_info:
            await flow.run("dev")

        assert exc_info.value.kind is ErrorKind.UNKNOWN_ERROR
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert fake_git.current_branch == "feature-x"
        assert flow.state is PushState.FAILED

    @pytest.mark.asyncio
    async def test_remote_commit_comparison_fallback(self, flow, fake_git, mock_platform, git_error, commit) -> None:
        """When the local range cannot be read, GitHub's comparison is used."""
        fake_git.on(
            "log",
            f"origin/dev..{WORKING}",
            f"--pretty=format:{LOG_FORMAT}",
            raises=git_error("fatal: bad revision 'origin/dev'"),
        )
        mock_platform.compare_commits.return_value = [commit("feat: remote view", NOW.astimezone())]

        result = await flow.run("dev")

        mock_platform.compare_commits.assert_awaited_once_with("octo", "widgets", "dev", WORKING)
        assert result.analysis.total_count == 1

    @pytest.mark.asyncio
    async def test_restore_failure_is_a_warning(self, flow, fake_git, git_error, reporter) -> None:
        """A failed switch back does not fail an otherwise complete run."""
        fake_git.on("checkout", "feature-x", raises=git_error("error: unable to switch"))

        result = await flow.run("dev")

        assert result.states[-1] is PushState.DONE
        assert any("git checkout feature-x" in message for message in reporter.messages("warn"))
