"""Async subprocess utilities.

Provides non-blocking subprocess execution for use in async contexts.
Commands are always executed from an argument vector, never through a shell.

Example:
    >>> from zhgit.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("git", "status", cwd="/repo")
    >>> if code == 0:
    ...     print(stdout)
"""

import asyncio
import contextlib
import os
from pathlib import Path

READ_CHUNK_SIZE = 64 * 1024


class OutputLimitExceeded(Exception):
    """A command wrote more to stdout than the caller allowed.

    Attributes:
        limit: The cap in bytes that was exceeded
    """

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Command produced more than {limit} bytes of output")


async def _read_stream(stream: asyncio.StreamReader, limit: int | None) -> bytes:
    """Read a pipe to EOF, giving up as soon as it exceeds ``limit`` bytes."""
    chunks: list[bytes] = []
    size = 0
    while chunk := await stream.read(READ_CHUNK_SIZE):
        size += len(chunk)
        if limit is not None and size > limit:
            raise OutputLimitExceeded(limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def _collect(
    process: asyncio.subprocess.Process,
    max_output: int | None,
) -> tuple[bytes, bytes]:
    assert process.stdout is not None and process.stderr is not None

    # stderr drains concurrently so a chatty process never blocks on a full pipe
    stderr_task = asyncio.create_task(_read_stream(process.stderr, None))
    try:
        stdout_bytes = await _read_stream(process.stdout, max_output)
    except BaseException:
        stderr_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stderr_task
        raise
    stderr_bytes = await stderr_task
    await process.wait()
    return stdout_bytes, stderr_bytes


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
    max_output: int | None = None,
) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Executes the command in a subprocess, capturing stdout and stderr.
    Output is read incrementally, so a command that floods stdout is stopped
    once it passes ``max_output`` instead of being buffered in full.

    Args:
        *args: Command and arguments as separate strings. The first argument
            is the executable, subsequent arguments are passed to it.
            Example: "git", "checkout", "-b", "feature"
        cwd: Working directory for command execution. If None, uses the
            current working directory of the parent process.
        timeout: Maximum seconds to wait for command completion. If exceeded,
            the process is killed and TimeoutError is raised. None means
            wait indefinitely.
        env: Extra environment variables layered over the parent environment.
        max_output: Maximum stdout size in bytes. None means unbounded.

    Returns:
        Tuple of (stdout, stderr, return_code) where stdout and stderr are
        decoded UTF-8 strings (with replacement for invalid bytes), and
        return_code is the process exit code.

    Raises:
        TimeoutError: If timeout is exceeded. The process is killed
            before this exception is raised.
        OutputLimitExceeded: If stdout grows past max_output. The process
            is killed before this exception is raised.
        FileNotFoundError: If the command executable is not found.
        PermissionError: If the executable cannot be executed.
    """
    process_env = None
    if env:
        process_env = {**os.environ, **env}

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=process_env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            _collect(process, max_output),
            timeout=timeout,
        )
    except (TimeoutError, OutputLimitExceeded):
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    return stdout, stderr, process.returncode or 0
