"""Workflow orchestration engine.

Key Components:
    - WorkflowOrchestrator: Entry point wiring the push and branch flows
    - PushFlow: State machine behind ``zhgit push``
    - BranchFlow: Create, switch, delete and list branches
    - ErrorClassifier: Maps raw failures onto typed errors
    - ProgressReporter: Receiver for human-facing progress output

Example:
    >>> from zhgit.engine.orchestrator import WorkflowOrchestrator
    >>> orchestrator = WorkflowOrchestrator(settings, token_manager)
    >>> result = await orchestrator.push("dev")
"""

from zhgit.engine.types import BranchResult, PushResult, PushState

__all__ = [
    "BranchResult",
    "PushResult",
    "PushState",
]
