"""The ``zhgit branch`` command."""

import click

from zhgit.cli.common import get_orchestrator, run_async
from zhgit.enums import BranchAction


@click.command(name="branch")
@click.argument("action")
@click.argument("name", required=False)
@click.option("-b", "--base", default=None, help="Base branch for create (default: main)")
@click.option("-f", "--force", is_flag=True, help="Overwrite, recreate from remote, or force-delete")
@click.option("-r", "--remote", "include_remote", is_flag=True, help="Include remote branches when listing")
@click.pass_context
def branch_command(
    ctx: click.Context,
    action: str,
    name: str | None,
    base: str | None,
    force: bool,
    include_remote: bool,
) -> None:
    """Manage branches: create|c, switch|s, delete|d, list|l.

    Examples:

        zhgit branch create login-form --base dev

        zhgit branch s feature-x --force

        zhgit branch list --remote
    """
    orchestrator = get_orchestrator(ctx)
    result = run_async(
        ctx,
        lambda: orchestrator.branch(action, name=name, base=base, force=force, include_remote=include_remote),
        "branch",
    )

    if result.action is BranchAction.LIST:
        click.echo("📋 Branches:")
        click.echo(result.output)
