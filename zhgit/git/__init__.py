"""Git plumbing for zhgit.

This package wraps every interaction with the local git executable: safe
command execution, read-only repository queries, branch naming rules and
remote URL parsing.

Example:
    >>> from zhgit.git import RemoteUrlParser, RepositoryInspector, SafeCommandRunner
    >>> inspector = RepositoryInspector(SafeCommandRunner())
    >>> url = await inspector.remote_url()
    >>> RemoteUrlParser(url).full_name
    'octo/widgets'
"""

from zhgit.git.branch_policy import BranchNamePolicy
from zhgit.git.inspector import RepositoryInspector
from zhgit.git.models import RepositoryInfo
from zhgit.git.parser import RemoteUrlParser
from zhgit.git.runner import SafeCommandRunner

__all__ = [
    # Execution
    "SafeCommandRunner",
    "RepositoryInspector",
    # Naming and parsing
    "BranchNamePolicy",
    "RemoteUrlParser",
    # Models
    "RepositoryInfo",
]
