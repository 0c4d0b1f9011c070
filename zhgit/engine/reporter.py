"""Progress reporting for workflows.

Workflows announce their steps through a ``ProgressReporter`` so that the
engine never writes to the terminal itself. The CLI injects a
``ConsoleReporter``; library callers can pass a ``NullReporter``.
"""

from typing import Protocol

import click
import structlog

log = structlog.get_logger(__name__)


class ProgressReporter(Protocol):
    """Receiver for human-facing progress messages."""

    def start(self, message: str) -> None: ...

    def succeed(self, message: str) -> None: ...

    def fail(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...


class ConsoleReporter:
    """Write progress to the terminal with click.

    Status lines go to stdout; warnings and failures go to stderr.
    """

    prefix = "[zhgit]"

    def start(self, message: str) -> None:
        click.echo(f"{self.prefix} {message}...")

    def succeed(self, message: str) -> None:
        click.secho(f"{self.prefix} ✓ {message}", fg="green")

    def fail(self, message: str) -> None:
        click.secho(f"{self.prefix} ✗ {message}", fg="red", err=True)

    def info(self, message: str) -> None:
        click.secho(f"{self.prefix} {message}", fg="cyan")

    def warn(self, message: str) -> None:
        click.secho(f"{self.prefix} ⚠ {message}", fg="yellow", err=True)


class NullReporter:
    """Discard progress messages, logging them at debug level."""

    def start(self, message: str) -> None:
        log.debug("progress", status="start", message=message)

    def succeed(self, message: str) -> None:
        log.debug("progress", status="succeed", message=message)

    def fail(self, message: str) -> None:
        log.debug("progress", status="fail", message=message)

    def info(self, message: str) -> None:
        log.debug("progress", status="info", message=message)

    def warn(self, message: str) -> None:
        log.debug("progress", status="warn", message=message)
