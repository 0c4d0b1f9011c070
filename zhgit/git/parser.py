"""Remote URL parsing.

Turns the URL of a git remote into the owner/repository pair the GitHub API
needs. Both SSH and HTTPS forms are accepted:

    SSH:
        - git@github.com:owner/repo.git
        - ssh://git@github.com/owner/repo.git
    HTTPS:
        - https://github.com/owner/repo.git
        - https://github.example.com:8443/owner/repo

Example:
    >>> parser = RemoteUrlParser("git@github.com:octo/widgets.git")
    >>> parser.full_name
    'octo/widgets'
"""

import re
from typing import Literal

from zhgit.exceptions import InvalidGitUrlError
from zhgit.git.models import RepositoryInfo


class RemoteUrlParser:
    """Parser for git remote URLs.

    Parsing happens in the constructor; an unrecognized URL raises
    ``InvalidGitUrlError`` and a constructed parser always has an owner and
    a repository name.

    Attributes:
        url: The URL as given, stripped of surrounding whitespace
        url_type: "ssh" or "https"
        host: Hostname of the git server
        port: Explicit HTTPS port, if any
        owner: Repository owner or organization
        repo: Repository name without the ``.git`` suffix
    """

    # user@host:path, the scp-like form git uses for SSH remotes
    SCP_PATTERN = re.compile(r"^(?P<user>[\w.-]+)@(?P<host>[a-zA-Z0-9._-]+):(?P<path>[^/].*?)(?:\.git)?/?$")

    SSH_PATTERN = re.compile(
        r"^ssh://(?:[\w.-]+@)?(?P<host>[a-zA-Z0-9._-]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$"
    )

    HTTPS_PATTERN = re.compile(
        r"^https?://(?:[^@/]+@)?(?P<host>[a-zA-Z0-9._-]+)(?::(?P<port>\d+))?/(?P<path>.+?)(?:\.git)?/?$"
    )

    def __init__(self, url: str) -> None:
        """Parse a remote URL.

        Args:
            url: Remote URL as reported by ``git remote get-url``

        Raises:
            InvalidGitUrlError: If the URL is neither SSH nor HTTPS, or its
                path does not name an owner and a repository
        """
        self.url = url.strip()
        self.url_type: Literal["ssh", "https"]
        self.port: int | None = None

        if match := (self.SCP_PATTERN.match(self.url) or self.SSH_PATTERN.match(self.url)):
            self.url_type = "ssh"
        elif match := self.HTTPS_PATTERN.match(self.url):
            self.url_type = "https"
            if port := match.group("port"):
                self.port = int(port)
        else:
            raise InvalidGitUrlError(
                self.url,
                reason="Must be SSH (git@host:owner/repo) or HTTPS (https://host/owner/repo)",
            )

        self.host: str = match.group("host")
        self.owner, self.repo = self._split_path(match.group("path"))

    def _split_path(self, path: str) -> tuple[str, str]:
        parts = [part for part in path.strip("/").removesuffix(".git").split("/") if part]
        if len(parts) < 2:
            raise InvalidGitUrlError(self.url, reason=f"Path must contain owner/repo (got: {path})")
        # Nested groups keep the last component as the repository
        return "/".join(parts[:-1]), parts[-1]

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def https_url(self) -> str:
        """HTTPS clone URL, including the port when one was given."""
        host = f"{self.host}:{self.port}" if self.port else self.host
        return f"https://{host}/{self.owner}/{self.repo}.git"

    def to_repository_info(self, remote_name: str = "origin") -> RepositoryInfo:
        """Convert the parsed URL into a ``RepositoryInfo`` model."""
        return RepositoryInfo(
            owner=self.owner,
            repo=self.repo,
            host=self.host,
            remote_name=remote_name,
        )
