"""Execution context for the push workflow.

``WorkflowContext`` carries the branch names of a single push run from one
state to the next.
"""

from dataclasses import dataclass, replace
from typing import Any


@dataclass
class WorkflowContext:
    """State shared by the steps of one push run.

    Attributes:
        original_branch: Branch checked out when the run started
        target_branch: Branch the pull request targets (main, dev or release)
        username: git ``user.name`` of the person pushing
        working_branch: Integration branch that gets pushed
        is_already_merge_branch: The run started on an integration branch
            for the same target, so no new branch is cut
    """

    original_branch: str
    target_branch: str
    username: str
    working_branch: str | None = None
    is_already_merge_branch: bool = False

    @property
    def pushed_branch(self) -> str:
        """Branch that is pushed and used as the pull request head."""
        return self.working_branch or self.original_branch

    def with_updates(self, **kwargs: Any) -> "WorkflowContext":
        """Create a new context with updated fields."""
        return replace(self, **kwargs)
