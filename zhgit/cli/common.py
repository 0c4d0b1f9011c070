"""Shared helpers for the zhgit CLI commands."""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
import structlog

from zhgit.config.settings import ZhgitSettings
from zhgit.config.store import ConfigStore
from zhgit.credentials.keyring_backend import KeyringBackend
from zhgit.credentials.manager import TokenManager
from zhgit.engine.error_classifier import ErrorClassifier
from zhgit.engine.orchestrator import WorkflowOrchestrator
from zhgit.engine.reporter import ConsoleReporter
from zhgit.exceptions import MergeConflictError, ZhgitError

log = structlog.get_logger(__name__)

T = TypeVar("T")


def get_settings(ctx: click.Context) -> ZhgitSettings:
    return ctx.obj["settings"]


def get_orchestrator(ctx: click.Context) -> WorkflowOrchestrator:
    """Return the orchestrator for this invocation, building it on first use."""
    orchestrator = ctx.obj.get("orchestrator")
    if orchestrator is None:
        settings = get_settings(ctx)
        token_manager = TokenManager(
            KeyringBackend(),
            ConfigStore(settings.config_path),
            service=settings.keyring_service,
        )
        orchestrator = WorkflowOrchestrator(settings, token_manager, reporter=ConsoleReporter())
        ctx.obj["orchestrator"] = orchestrator
    return orchestrator


def display_error(error: ZhgitError, debug: bool = False) -> None:
    """Print a typed error with its remediation hint to stderr."""
    click.secho(f"Error: {error.message}", fg="red", err=True)

    if isinstance(error, MergeConflictError):
        click.echo(f"Resolve the conflicts on {error.working_branch}, then run:", err=True)
        for number, step in enumerate(error.resolution_steps, start=1):
            click.echo(f"  {number}. {step}", err=True)
    else:
        click.echo(f"💡 {error.suggestion}", err=True)

    if debug:
        click.echo(json.dumps(error.to_dict(), indent=2, default=str), err=True)


def run_async(ctx: click.Context, operation: Callable[[], Awaitable[T]], context: str) -> T:
    """Run a coroutine for a CLI command and turn failures into exit codes.

    Exits with status 1 on any failure and 130 when interrupted.
    """
    debug = get_settings(ctx).debug
    try:
        return asyncio.run(operation())
    except ZhgitError as e:
        ErrorClassifier.log_error(e)
        display_error(e, debug)
        log.debug(f"{context}_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        error = ErrorClassifier.classify(e, context)
        display_error(error, debug)
        log.error(f"{context}_unexpected", exc_info=True)
        sys.exit(1)
