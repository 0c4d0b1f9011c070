"""Remote platform providers.

Key Components:
    - RemotePlatform: Abstract base for hosting platform clients
    - GitHubRestProvider: GitHub REST API implementation (PyGithub)
"""

from zhgit.providers.base import RemotePlatform
from zhgit.providers.github_rest import GitHubRestProvider

__all__ = [
    "GitHubRestProvider",
    "RemotePlatform",
]
