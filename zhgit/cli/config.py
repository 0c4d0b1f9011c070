"""The ``zhgit config`` command.

Stores the GitHub token of the current git user in the system keyring after
checking it against the GitHub API. The record file only notes that a
validated token exists; it never contains the token.
"""

import click

from zhgit.cli.common import get_orchestrator, run_async


@click.command(name="config")
@click.argument("token", required=False)
@click.option("--clear", is_flag=True, help="Remove the stored token")
@click.option("--show", is_flag=True, help="Show the stored (non-secret) settings")
@click.pass_context
def config_command(ctx: click.Context, token: str | None, clear: bool, show: bool) -> None:
    """Store a GitHub TOKEN for the current git user.

    Examples:

        zhgit config ghp_xxxxxxxxxxxxxxxxxxxx

        zhgit config --show

        zhgit config --clear
    """
    if sum((bool(token), clear, show)) != 1:
        raise click.UsageError("Pass exactly one of TOKEN, --clear or --show")

    orchestrator = get_orchestrator(ctx)

    if clear:
        run_async(ctx, orchestrator.clear_token, "config_clear")
        return

    if show:
        username, record = run_async(ctx, orchestrator.show_config, "config_show")
        click.echo(f"git user:        {username}")
        if record is None:
            click.echo("token:           not configured")
            return
        click.echo(f"token:           {'stored' if record.has_token else 'not stored'}")
        click.echo(f"validated:       {'yes' if record.token_validated else 'no'}")
        click.echo(f"GitHub login:    {record.github_login or '-'}")
        click.echo(f"email:           {record.email or '-'}")
        click.echo(f"last used:       {record.last_used.isoformat() if record.last_used else '-'}")
        return

    user, _ = run_async(ctx, lambda: orchestrator.configure_token(token), "config")
    click.secho(f"✅ GitHub token saved for {user.login}", fg="green")
