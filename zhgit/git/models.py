"""Git repository data models.

Example:
    >>> info = RepositoryInfo(owner="octo", repo="widgets", host="github.com")
    >>> info.full_name
    'octo/widgets'
"""

from pydantic import BaseModel, field_validator


class RepositoryInfo(BaseModel):
    """Repository coordinates parsed from a remote URL.

    Attributes:
        owner: Repository owner/organization
        repo: Repository name (without .git suffix)
        host: Hostname of the git server
        remote_name: Which remote the URL came from
    """

    owner: str
    repo: str
    host: str = "github.com"
    remote_name: str = "origin"

    @field_validator("owner", "repo")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Ensure owner and repo are not empty.

        Raises:
            ValueError: If value is empty or whitespace
        """
        if not v or not v.strip():
            raise ValueError("Owner and repo must not be empty")
        return v.strip()

    @field_validator("repo")
    @classmethod
    def validate_no_git_suffix(cls, v: str) -> str:
        return v.removesuffix(".git")

    @property
    def full_name(self) -> str:
        """Return owner/repo format."""
        return f"{self.owner}/{self.repo}"
