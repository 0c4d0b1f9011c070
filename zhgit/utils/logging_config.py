"""
Logging configuration using structlog for structured logging.

Logs go to stderr so they never mix with command output on stdout. The
console renderer is used by default; JSON output is available for tooling.
"""

import re
import sys
from typing import Any

import structlog

# GitHub tokens (classic and fine-grained) must never reach a log line
TOKEN_PATTERN = re.compile(r"\b(gh[pousr]_[A-Za-z0-9]{20,}|github_pat_[A-Za-z0-9_]{20,})\b")

SENSITIVE_KEYS = {"token", "password", "secret", "authorization"}


def redact_tokens(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact credentials from log events.

    Args:
        logger: The logger instance
        method_name: The name of the called method
        event_dict: The event dictionary to process

    Returns:
        The event dictionary with credentials redacted
    """
    for key, value in event_dict.items():
        if not isinstance(value, str):
            continue
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = "***REDACTED***"
        else:
            event_dict[key] = TOKEN_PATTERN.sub("***REDACTED***", value)
    return event_dict


def configure_logging(log_level: str = "WARNING", json_output: bool = False) -> None:
    """Configure structured logging.

    Sets up structlog with a pipeline of processors for rich, structured logs
    that include timestamps, log levels, stack traces, and contextual information.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines instead of the human-readable console format
    """
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_tokens,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )