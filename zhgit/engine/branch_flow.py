"""
Branch management workflow.

Backs ``zhgit branch <action>``: create a branch from the freshly fetched
base, switch to a local or remote branch, delete a branch, or list branches.
"""

import structlog

from zhgit.engine.base import GitWorkflow
from zhgit.engine.types import BranchResult
from zhgit.enums import BranchAction, ErrorKind
from zhgit.exceptions import (
    ConfigurationError,
    InputValidationError,
    RepositoryStateError,
)
from zhgit.git.branch_policy import BranchNamePolicy

log = structlog.get_logger(__name__)


class BranchFlow(GitWorkflow):
    """Create, switch, delete and list branches."""

    async def run(
        self,
        action: BranchAction | str,
        name: str | None = None,
        base: str | None = None,
        force: bool = False,
        include_remote: bool = False,
    ) -> BranchResult:
        """Dispatch a branch action.

        Args:
            action: Action or its token (``create``/``c``, ``switch``/``s``,
                ``delete``/``d``, ``list``/``l``)
            name: Branch name (generated for create when omitted)
            base: Base branch for create (defaults to the configured base)
            force: Overwrite (create), recreate from remote (switch) or
                force-delete (delete)
            include_remote: List remote-tracking branches too

        Raises:
            InputValidationError: INVALID_INPUT for an unknown action
            ZhgitError: Whatever the action raises
        """
        resolved = action if isinstance(action, BranchAction) else BranchAction.parse(action)
        if resolved is None:
            raise InputValidationError(
                f"Unknown branch action '{action}'; use create, switch, delete or list",
                kind=ErrorKind.INVALID_INPUT,
            )

        await self.require_repository()
        log.debug("branch_action", action=resolved.value, name=name, force=force)

        match resolved:
            case BranchAction.CREATE:
                return await self.create(name, base=base, force=force)
            case BranchAction.SWITCH:
                return await self.switch(name, force=force)
            case BranchAction.DELETE:
                return await self.delete(name, force=force)
            case BranchAction.LIST:
                return await self.list_branches(include_remote=include_remote)

    async def create(self, name: str | None, base: str | None = None, force: bool = False) -> BranchResult:
        """Create ``name`` from ``origin/<base>`` and check it out."""
        base = base or self.settings.default_base_branch
        if not name:
            name = await self._generated_name()

        if not BranchNamePolicy.is_valid(name):
            raise InputValidationError(
                f"'{name}' is not a valid branch name",
                kind=ErrorKind.INVALID_BRANCH_NAME,
                details={"branch": name},
            )

        exists = await self.inspector.branch_exists(name)
        if exists and not force:
            raise RepositoryStateError(
                f"Branch '{name}' already exists; pass --force to overwrite it",
                kind=ErrorKind.GIT_BRANCH_EXISTS,
                details={"branch": name},
            )
        if exists:
            self.reporter.warn(f"Overwriting existing branch {name}")

        await self.fetch(base)

        start_point = f"{self.remote}/{base}"
        self.reporter.start(f"Creating branch {name}")
        await self.git(["checkout", "-B" if exists else "-b", name, start_point], f"creating branch {name}")
        self.reporter.succeed(f"Created and switched to {name} (from {start_point})")
        return BranchResult(BranchAction.CREATE, name)

    async def switch(self, name: str | None, force: bool = False) -> BranchResult:
        """Check out ``name``, creating it from its remote twin when needed.

        With ``force`` and an existing remote branch, a local branch of the
        same name is deleted and recreated from the remote.
        """
        if not name:
            raise InputValidationError("Name the branch to switch to", kind=ErrorKind.INVALID_INPUT)

        local_exists = await self.inspector.branch_exists(name)
        remote_exists = await self.inspector.branch_exists(name, remote=True)
        remote_branch = f"{self.remote}/{name}"

        if force and remote_exists:
            if local_exists:
                self.reporter.warn(f"Local branch {name} will be deleted and recreated from {remote_branch}")
                if await self.inspector.current_branch() == name:
                    await self._checkout(self.settings.default_base_branch)
                await self.git(["branch", "-D", name], f"deleting branch {name}")
            await self._create_from(name, remote_branch)
            return BranchResult(BranchAction.SWITCH, name)

        if not local_exists:
            if not remote_exists:
                raise RepositoryStateError(
                    f"Branch '{name}' does not exist",
                    kind=ErrorKind.GIT_BRANCH_NOT_EXISTS,
                    details={"branch": name},
                )
            self.reporter.info(f"No local branch {name}; creating it from {remote_branch}")
            await self._create_from(name, remote_branch)
            return BranchResult(BranchAction.SWITCH, name)

        if remote_exists:
            self.reporter.info(f"Tip: use --force to recreate {name} from {remote_branch}")
        await self._checkout(name)
        return BranchResult(BranchAction.SWITCH, name)

    async def delete(self, name: str | None, force: bool = False) -> BranchResult:
        if not name:
            raise InputValidationError("Name the branch to delete", kind=ErrorKind.INVALID_INPUT)

        if await self.inspector.current_branch() == name:
            raise InputValidationError(
                f"Cannot delete the checked-out branch '{name}'",
                kind=ErrorKind.INVALID_INPUT,
            )

        if not await self.inspector.branch_exists(name):
            raise RepositoryStateError(
                f"Branch '{name}' does not exist",
                kind=ErrorKind.GIT_BRANCH_NOT_EXISTS,
                details={"branch": name},
            )

        self.reporter.start(f"Deleting branch {name}")
        await self.git(["branch", "-D" if force else "-d", name], f"deleting branch {name}")
        self.reporter.succeed(f"Deleted branch {name}")
        return BranchResult(BranchAction.DELETE, name)

    async def list_branches(self, include_remote: bool = False) -> BranchResult:
        output = await self.inspector.list_branches(include_remote=include_remote)
        return BranchResult(BranchAction.LIST, output=output)

    async def _generated_name(self) -> str:
        username = await self.inspector.config_value("user.name")
        if not username:
            raise ConfigurationError("git user.name is not configured", kind=ErrorKind.CONFIG_MISSING)
        current = await self.inspector.current_branch()
        return BranchNamePolicy.generated_branch_name(username, current, self.clock())

    async def _checkout(self, name: str) -> None:
        self.reporter.start(f"Switching to {name}")
        await self.git(["checkout", name], f"switching to {name}")
        self.reporter.succeed(f"Switched to {name}")

    async def _create_from(self, name: str, start_point: str) -> None:
        self.reporter.start(f"Creating branch {name} from {start_point}")
        await self.git(["checkout", "-b", name, start_point], f"creating branch {name}")
        self.reporter.succeed(f"Switched to {name} (tracking {start_point})")
