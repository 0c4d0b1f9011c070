"""Type definitions for workflow states and results."""

from dataclasses import dataclass, field
from enum import Enum

from zhgit.engine.context import WorkflowContext
from zhgit.enums import BranchAction
from zhgit.models.domain import CommitAnalysis, PullRequest


class PushState(str, Enum):
    """States of the push workflow, in the order a successful run visits them."""

    INIT = "init"
    VALIDATE_PRECONDITIONS = "validate_preconditions"
    DETERMINE_BRANCH_NAME = "determine_branch_name"
    CREATE_WORKING_BRANCH = "create_working_branch"
    FETCH_TARGET = "fetch_target"
    MERGE_TARGET = "merge_target"
    PUSH = "push"
    CREATE_PULL_REQUEST = "create_pull_request"
    RESTORE_ORIGINAL_BRANCH = "restore_original_branch"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass
class PushResult:
    """Outcome of a successful ``zhgit push`` run.

    Attributes:
        context: Branch names used by the run
        pull_request: The pull request that was opened
        analysis: Current/historical split of the pushed commits
        states: States visited, in order
    """

    context: WorkflowContext
    pull_request: PullRequest
    analysis: CommitAnalysis
    states: list[PushState] = field(default_factory=list)


@dataclass
class BranchResult:
    """Outcome of a ``zhgit branch`` action.

    Attributes:
        action: The action that ran
        branch: Branch the action applied to (None for list)
        output: Raw git output worth showing (the branch listing)
    """

    action: BranchAction
    branch: str | None = None
    output: str = ""
