"""Pytest configuration and shared fixtures."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import structlog

from zhgit.config.settings import ZhgitSettings
from zhgit.config.store import ConfigStore
from zhgit.credentials.manager import TokenManager
from zhgit.exceptions import CommandError
from zhgit.git.inspector import RepositoryInspector
from zhgit.git.runner import SafeCommandRunner
from zhgit.models.domain import AuthenticatedUser, CommitRecord, PullRequest
from zhgit.providers.base import RemotePlatform


def git_failure(stderr: str, args: Sequence[str] = ("git",), stdout: str = "", returncode: int = 1) -> CommandError:
    """CommandError as raised by SafeCommandRunner for a failed git command."""
    return CommandError(
        f"git {args[0]} failed (exit {returncode})",
        args=list(args),
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


class FakeGitRunner:
    """Scripted stand-in for SafeCommandRunner.

    Branch queries, checkouts and ``config --get`` are answered from a small
    in-memory repository model; any other command returns a scripted outcome
    (a string or an exception) or an empty string.
    """

    def __init__(
        self,
        current_branch: str = "feature-x",
        branches: Sequence[str] = ("main", "feature-x"),
        remote_branches: Sequence[str] = ("main", "dev", "release"),
        config: dict[str, str] | None = None,
    ) -> None:
        self.current_branch = current_branch
        self.branches = set(branches)
        self.remote_branches = set(remote_branches)
        self.config = {"user.name": "alice", "user.email": "alice@example.com"} if config is None else config
        self.calls: list[list[str]] = []
        self._scripted: dict[tuple[str, ...], list[str | BaseException]] = {}

    def on(self, *args: str, returns: str = "", raises: BaseException | None = None) -> None:
        """Script the next outcome of a command; the last outcome repeats."""
        self._scripted.setdefault(tuple(args), []).append(raises if raises is not None else returns)

    def called(self, *args: str) -> bool:
        return list(args) in self.calls

    def commands(self, subcommand: str) -> list[list[str]]:
        return [call for call in self.calls if call[0] == subcommand]

    async def run(self, args: Sequence[str], *, timeout: float | None = None, max_output: int | None = None) -> str:
        argv = SafeCommandRunner.validate_args(args)
        self.calls.append(argv)

        key = tuple(argv)
        if key in self._scripted:
            outcomes = self._scripted[key]
            outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
            if isinstance(outcome, BaseException):
                raise outcome
            self._apply(argv)
            return outcome

        return self._answer(argv)

    def _answer(self, argv: list[str]) -> str:
        match argv:
            case ["rev-parse", "--abbrev-ref", "HEAD"]:
                return self.current_branch
            case ["rev-parse", "--verify", "--quiet", ref]:
                if ref.startswith("origin/") and ref.removeprefix("origin/") in self.remote_branches:
                    return "0" * 40
                if ref in self.branches:
                    return "0" * 40
                raise git_failure("", argv)
            case ["config", "--get", key]:
                if key in self.config:
                    return self.config[key]
                raise git_failure("", argv)
            case ["checkout", name] if name not in self.branches:
                raise git_failure(f"error: pathspec '{name}' did not match any file(s) known to git", argv)
        self._apply(argv)
        return ""

    def _apply(self, argv: list[str]) -> None:
        match argv:
            case ["checkout", "-b" | "-B", name, *_]:
                self.branches.add(name)
                self.current_branch = name
            case ["checkout", name]:
                self.current_branch = name
            case ["branch", "-d" | "-D", name]:
                self.branches.discard(name)
            case ["push", "-u", _, name]:
                self.remote_branches.add(name)


class RecordingReporter:
    """ProgressReporter that keeps every message for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def start(self, message: str) -> None:
        self.events.append(("start", message))

    def succeed(self, message: str) -> None:
        self.events.append(("succeed", message))

    def fail(self, message: str) -> None:
        self.events.append(("fail", message))

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def warn(self, message: str) -> None:
        self.events.append(("warn", message))

    def messages(self, status: str) -> list[str]:
        return [message for kind, message in self.events if kind == status]


class InMemoryVault:
    """TokenVault keeping secrets in a dict."""

    name = "memory"
    available = True

    def __init__(self) -> None:
        self.secrets: dict[tuple[str, str], str] = {}

    def get(self, service: str, account: str) -> str | None:
        return self.secrets.get((service, account))

    def set(self, service: str, account: str, value: str) -> None:
        self.secrets[(service, account)] = value

    def delete(self, service: str, account: str) -> bool:
        return self.secrets.pop((service, account), None) is not None


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


def make_commit(
    subject: str,
    timestamp: datetime,
    commit_hash: str | None = None,
    author: str = "Alice",
) -> CommitRecord:
    """Build a CommitRecord with a deterministic hash derived from the subject."""
    digest = commit_hash or f"{abs(hash((subject, timestamp))):040x}"[:40]
    return CommitRecord(
        hash=digest,
        subject=subject,
        author=author,
        email=f"{author.lower()}@example.com",
        timestamp=timestamp,
    )


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 3, 15, 9, 30, tzinfo=UTC)


@pytest.fixture
def commits_factory(base_time: datetime):
    """Build newest-first commits from minute offsets relative to base_time."""

    def _factory(*offsets_in_minutes: float) -> list[CommitRecord]:
        commits = [
            make_commit(f"feat: change {index}", base_time + timedelta(minutes=offset))
            for index, offset in enumerate(offsets_in_minutes)
        ]
        return sorted(commits, key=lambda c: c.timestamp, reverse=True)

    return _factory


@pytest.fixture
def settings(tmp_path: Path) -> ZhgitSettings:
    """Settings isolated from the environment and the home directory."""
    return ZhgitSettings(config_path=tmp_path / "config.yaml", retry_delay=0)


@pytest.fixture
def fake_git() -> FakeGitRunner:
    return FakeGitRunner()


@pytest.fixture
def inspector(fake_git: FakeGitRunner) -> RepositoryInspector:
    return RepositoryInspector(fake_git)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def vault() -> InMemoryVault:
    return InMemoryVault()


@pytest.fixture
def config_store(settings: ZhgitSettings) -> ConfigStore:
    return ConfigStore(settings.config_path)


@pytest.fixture
def token_manager(vault: InMemoryVault, config_store: ConfigStore) -> TokenManager:
    return TokenManager(vault, config_store)


@pytest.fixture
def github_user() -> AuthenticatedUser:
    return AuthenticatedUser(login="alice-gh", email="alice@example.com", scopes=("repo", "workflow"))


@pytest.fixture
def stored_token(token_manager: TokenManager, github_user: AuthenticatedUser) -> str:
    """A validated token stored for git user 'alice'."""
    token = "ghp_" + "a" * 36
    token_manager.save_token("alice", token, github_user)
    return token


@pytest.fixture
def mock_platform() -> AsyncMock:
    """Create a mock RemotePlatform."""
    platform = AsyncMock(spec=RemotePlatform)
    platform.get_authenticated_user = AsyncMock(
        return_value=AuthenticatedUser(login="alice-gh", email=None, scopes=("repo",))
    )
    platform.get_token_scopes = AsyncMock(return_value=["repo"])
    platform.compare_commits = AsyncMock(return_value=[])
    platform.create_pull_request = AsyncMock(
        side_effect=lambda owner, repo, title, body, head, base: PullRequest(
            number=7,
            title=title,
            url=f"https://github.com/{owner}/{repo}/pull/7",
            head=head,
            base=base,
        )
    )
    return platform


@pytest.fixture
def git_error():
    """Factory for the CommandError of a failed git command."""
    return git_failure


@pytest.fixture
def make_git():
    """Factory for FakeGitRunner instances with custom repository state."""
    return FakeGitRunner


@pytest.fixture
def commit():
    """Factory for single CommitRecord instances."""
    return make_commit
