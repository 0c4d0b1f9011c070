"""CLI entry point for zhgit."""

import sys

import click
import structlog
from pydantic import ValidationError

from zhgit import __version__
from zhgit.cli import branch_command, config_command, push_command
from zhgit.config.settings import ZhgitSettings
from zhgit.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option("--debug", is_flag=True, help="Verbose diagnostics (same as ZHGIT_DEBUG=1)")
@click.option("--log-level", default=None, help="Logging level (default: WARNING)")
@click.version_option(__version__, prog_name="zhgit")
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_level: str | None) -> None:
    """zhgit: push through pull requests and manage branches."""
    ctx.ensure_object(dict)

    overrides: dict[str, object] = {}
    if debug:
        overrides["debug"] = True
    if log_level:
        overrides["log_level"] = log_level

    try:
        settings = ctx.obj.get("settings") or ZhgitSettings(**overrides)
    except ValidationError as e:
        click.echo(f"Error: Invalid zhgit settings: {e}", err=True)
        sys.exit(1)

    configure_logging(settings.effective_log_level, json_output=settings.log_json)
    log.debug("cli_started", command=ctx.invoked_subcommand)
    ctx.obj["settings"] = settings


cli.add_command(push_command)
cli.add_command(branch_command)
cli.add_command(config_command)


if __name__ == "__main__":
    cli()
