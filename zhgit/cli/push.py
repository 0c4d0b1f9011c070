"""The ``zhgit push`` command."""

import click

from zhgit.cli.common import get_orchestrator, run_async


@click.command(name="push")
@click.argument("target")
@click.pass_context
def push_command(ctx: click.Context, target: str) -> None:
    """Push the current branch to TARGET through a new pull request.

    TARGET must be one of main, dev or release. The current work is merged
    with the latest TARGET on a fresh integration branch, which is pushed
    and opened as a pull request.

    Examples:

        zhgit push dev
    """
    orchestrator = get_orchestrator(ctx)
    result = run_async(ctx, lambda: orchestrator.push(target), "push")

    click.echo("")
    click.secho(f"✅ Pull request #{result.pull_request.number}: {result.pull_request.title}", fg="green")
    click.echo(f"   {result.pull_request.url}")
    click.echo(f"   {result.analysis.summary}")
