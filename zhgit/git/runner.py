"""Safe execution of git subcommands.

``SafeCommandRunner`` is the only place zhgit spawns git. Arguments are
validated and passed to the process as a discrete vector, so no argument is
ever interpreted by a shell; arguments containing shell metacharacters are
rejected before anything runs.

Example:
    >>> runner = SafeCommandRunner(cwd="/path/to/repo")
    >>> branch = await runner.run(["rev-parse", "--abbrev-ref", "HEAD"])
"""

from collections.abc import Sequence
from pathlib import Path

import structlog

from zhgit.enums import ErrorKind
from zhgit.exceptions import CommandError, InputValidationError
from zhgit.utils.async_subprocess import OutputLimitExceeded, run_command

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_OUTPUT = 1024 * 1024

FORBIDDEN_CHARACTERS = (";", "|", "&", "`")


class SafeCommandRunner:
    """Validate and execute git subcommands.

    Attributes:
        cwd: Working directory for every command (None for the process cwd)
        executable: Name or path of the git executable
        timeout: Default timeout in seconds
        max_output: Default cap on captured stdout, in bytes
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        executable: str = "git",
        timeout: float = DEFAULT_TIMEOUT,
        max_output: int = DEFAULT_MAX_OUTPUT,
    ) -> None:
        self.cwd = cwd
        self.executable = executable
        self.timeout = timeout
        self.max_output = max_output

    @staticmethod
    def validate_args(args: Sequence[str]) -> list[str]:
        """Check a git argument vector.

        Args:
            args: Subcommand and its arguments, without the executable

        Returns:
            The arguments with surrounding whitespace removed

        Raises:
            InputValidationError: If the vector is empty, holds a non-string,
                or an argument contains a shell metacharacter
        """
        if isinstance(args, str) or not isinstance(args, Sequence) or not args:
            raise InputValidationError(
                "Git command arguments must be a non-empty list of strings",
                kind=ErrorKind.INVALID_INPUT,
            )

        validated = []
        for arg in args:
            if not isinstance(arg, str):
                raise InputValidationError(
                    f"Git command argument must be a string, got {type(arg).__name__}",
                    kind=ErrorKind.INVALID_INPUT,
                )
            if any(char in arg for char in FORBIDDEN_CHARACTERS):
                raise InputValidationError(
                    f"Git command argument contains a forbidden character: {arg}",
                    kind=ErrorKind.INVALID_INPUT,
                    details={"argument": arg},
                )
            validated.append(arg.strip())
        return validated

    async def run(
        self,
        args: Sequence[str],
        *,
        timeout: float | None = None,
        max_output: int | None = None,
    ) -> str:
        """Run ``git <args>`` and return its stripped stdout.

        Args:
            args: Subcommand and its arguments
            timeout: Seconds before the process is killed (default 30)
            max_output: Maximum stdout size in bytes (default 1 MiB)

        Returns:
            Standard output with surrounding whitespace removed

        Raises:
            InputValidationError: If the arguments are rejected
            CommandError: On non-zero exit, timeout, oversized output or a
                missing git executable
        """
        argv = self.validate_args(args)
        limit = max_output if max_output is not None else self.max_output
        seconds = timeout if timeout is not None else self.timeout
        command = " ".join(argv)
        subcommand = argv[0]

        log.debug("git_command", command=command, cwd=str(self.cwd) if self.cwd else None)

        try:
            stdout, stderr, returncode = await run_command(
                self.executable,
                *argv,
                cwd=self.cwd,
                timeout=seconds,
                env={"GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"},
                max_output=limit,
            )
        except TimeoutError as e:
            log.warning("git_command_timeout", command=command, timeout=seconds)
            raise CommandError(
                f"git {subcommand} timed out after {seconds:g}s",
                args=argv,
            ) from e
        except OutputLimitExceeded as e:
            log.warning("git_command_output_exceeded", command=command, limit=limit)
            raise CommandError(
                f"git {subcommand} produced more than {limit} bytes of output",
                args=argv,
            ) from e
        except OSError as e:
            raise CommandError(f"Unable to execute {self.executable}: {e}", args=argv) from e

        if returncode != 0:
            log.debug("git_command_failed", command=command, returncode=returncode, stderr=stderr.strip())
            raise CommandError(
                f"git {subcommand} failed (exit {returncode})",
                args=argv,
                returncode=returncode,
                stdout=stdout,
                stderr=stderr,
            )

        return stdout.strip()
