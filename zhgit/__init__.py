"""zhgit: push-and-open-pull-request workflows on top of git and GitHub.

The package turns ``zhgit push <target>`` into a recoverable, multi-step
workflow: create an integration branch, merge the target into it, push it and
open a pull request whose description separates the commits authored for this
push from commits already carried on the branch.

Subpackages:
    - git: safe git command execution, repository queries, branch naming
    - analysis: commit classification and pull request composition
    - engine: the push and branch workflows, error classification, progress
    - providers: GitHub REST client
    - credentials: keyring-backed token storage
    - config: settings and the per-user config store
    - cli: click command implementations
"""

__version__ = "0.4.0"
