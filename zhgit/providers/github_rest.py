"""GitHub provider implementation using PyGithub."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import structlog
from github import Auth, Github, GithubException
from github.Commit import Commit as GHCommit
from github.PullRequest import PullRequest as GHPullRequest

from zhgit.models.domain import AuthenticatedUser, CommitRecord, PullRequest
from zhgit.providers.base import RemotePlatform

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


class GitHubRestProvider(RemotePlatform):
    """GitHub implementation using PyGithub library."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 15,
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (for GitHub Enterprise)
            timeout: Seconds before an API request is abandoned
        """
        self.token = token.strip() if token else token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Github | None = None

    @property
    def client(self) -> Github:
        if self._client is None:
            self._client = Github(auth=Auth.Token(self.token), base_url=self.base_url, timeout=int(self.timeout))
        return self._client

    async def close(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None

    async def get_authenticated_user(self) -> AuthenticatedUser:
        """Fetch the token owner and the scopes granted to the token."""
        try:

            def _get_user() -> AuthenticatedUser:
                gh_user = self.client.get_user()
                login = gh_user.login
                return AuthenticatedUser(
                    login=login,
                    email=gh_user.email,
                    scopes=tuple(self.client.oauth_scopes or ()),
                )

            user = await _run_sync(_get_user)
            log.info("github_authenticated", login=user.login, scopes=list(user.scopes))
            return user

        except GithubException as e:
            log.error("github_authentication_failed", status=e.status, error=str(e))
            raise

    async def get_token_scopes(self) -> list[str]:
        """Return the OAuth scopes granted to the token."""
        user = await self.get_authenticated_user()
        return list(user.scopes)

    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> list[CommitRecord]:
        """List commits of ``base...head`` as reported by GitHub, newest first."""
        log.debug("compare_commits", owner=owner, repo=repo, base=base, head=head)

        try:

            def _compare() -> list[GHCommit]:
                comparison = self.client.get_repo(f"{owner}/{repo}").compare(base, head)
                return list(comparison.commits)

            gh_commits = await _run_sync(_compare)
            return [self._convert_commit(c) for c in reversed(gh_commits)]

        except GithubException as e:
            log.error("github_compare_failed", base=base, head=head, error=str(e))
            raise

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        """Create a pull request."""
        log.info("create_pull_request", owner=owner, repo=repo, title=title, head=head, base=base)

        try:

            def _create_pr() -> GHPullRequest:
                return self.client.get_repo(f"{owner}/{repo}").create_pull(
                    title=title,
                    body=body,
                    head=head,
                    base=base,
                )

            gh_pr = await _run_sync(_create_pr)
            return self._convert_pull_request(gh_pr)

        except GithubException as e:
            log.error("github_create_pr_failed", status=e.status, error=str(e))
            raise

    def _convert_commit(self, gh_commit: GHCommit) -> CommitRecord:
        """Convert GitHub Commit to our CommitRecord model."""
        git_commit = gh_commit.commit
        return CommitRecord(
            hash=gh_commit.sha,
            subject=(git_commit.message or "").partition("\n")[0],
            author=git_commit.author.name,
            email=git_commit.author.email,
            timestamp=git_commit.author.date,
        )

    def _convert_pull_request(self, gh_pr: GHPullRequest) -> PullRequest:
        """Convert GitHub PullRequest to our PullRequest model."""
        return PullRequest(
            number=gh_pr.number,
            title=gh_pr.title,
            url=gh_pr.html_url,
            head=gh_pr.head.ref,
            base=gh_pr.base.ref,
        )
