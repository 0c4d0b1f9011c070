"""
Abstract base class for remote platform providers.

The workflows talk to the hosting platform only through ``RemotePlatform``,
which normalizes API responses into the domain models of
``zhgit.models.domain``.
"""

from abc import ABC, abstractmethod

from zhgit.models.domain import AuthenticatedUser, CommitRecord, PullRequest


class RemotePlatform(ABC):
    """Contract for the subset of the hosting platform API zhgit uses.

    All methods are async. Implementations let the platform client's own
    exceptions propagate so the error classifier sees the raw failure.
    """

    @abstractmethod
    async def get_authenticated_user(self) -> AuthenticatedUser:
        """Return the owner of the configured token.

        Returns:
            The user, including the scopes granted to the token

        Raises:
            GithubException: If the token is rejected or the request fails
        """
        pass

    @abstractmethod
    async def get_token_scopes(self) -> list[str]:
        """Return the OAuth scopes granted to the configured token.

        Fine-grained tokens report no scopes; an empty list is returned.
        """
        pass

    @abstractmethod
    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> list[CommitRecord]:
        """List commits reachable from ``head`` but not from ``base``, newest first."""
        pass

    @abstractmethod
    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        """Open a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            title: Pull request title
            body: Markdown description
            head: Branch with the changes
            base: Branch to merge into

        Returns:
            The created pull request

        Raises:
            GithubException: If the API request fails (e.g. 422 when a pull
                request for the same head already exists)
        """
        pass

    async def close(self) -> None:
        """Release the client's connections. The provider is unusable afterwards."""
        return None
