"""Logging utilities for txthook."""

import logging
import sys
import time
from contextvars import ContextVar, Token
from typing import TextIO

# NullHandler on root logger (library best practice)
_root = logging.getLogger("txthook")
_root.addHandler(logging.NullHandler())

# Context variable for the domains handled by the current hook call
_current_domains: ContextVar[list[str] | None] = ContextVar("current_domains", default=None)

# Extra fields rendered by the CLI formatter, in this order
EXTRA_FIELDS = (
    "domain",
    "domains",
    "zone",
    "record_name",
    "record_id",
    "status_code",
    "detail",
    "elapsed_ms",
    "missing",
    "certfile",
    "response",
    "error",
)


def set_domains(domains: list[str] | None) -> Token[list[str] | None]:
    """Set current domains for logging context.

    Args:
        domains: List of domains being processed.

    Returns:
        Token to reset the context.
    """
    return _current_domains.set(domains)


def reset_domains(token: Token[list[str] | None]) -> None:
    """Reset domains context.

    Args:
        token: Token from set_domains() call.
    """
    _current_domains.reset(token)


def get_domain_extra() -> dict[str, list[str] | str]:
    """Get domain info for log extra fields.

    Returns:
        Dict with 'domain' (single) or 'domains' (multiple), or empty dict.
    """
    domains = _current_domains.get()
    if domains is None:
        return {}
    if len(domains) == 1:
        return {"domain": domains[0]}
    return {"domains": domains}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the txthook namespace.

    Args:
        name: The module name (typically __name__).

    Returns:
        A logger instance for the module.
    """
    return logging.getLogger(name)


class ExtraFormatter(logging.Formatter):
    """Formatter that appends known extra fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        pairs = [
            f"{field}={getattr(record, field)}"
            for field in EXTRA_FIELDS
            if getattr(record, field, None) is not None
        ]
        if pairs:
            message = f"{message} ({', '.join(pairs)})"
        return message


def configure_logging(
    level: int | str = logging.INFO, stream: TextIO | None = None
) -> logging.Handler:
    """Attach a stderr handler to the txthook logger.

    Only the command line entry point calls this. Hook output must never go
    to stdout, since the ACME client may read it.

    Args:
        level: Log level name or number for the handler.
        stream: Output stream (default: sys.stderr).

    Returns:
        The installed handler.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ExtraFormatter("%(levelname)s %(message)s"))
    handler.setLevel(level)

    _root.addHandler(handler)
    _root.setLevel(level)
    return handler


class Timer:
    """Context manager for timing operations.

    Usage:
        with Timer() as t:
            # do work
        print(f"Elapsed: {t.elapsed_ms}ms")
    """

    def __init__(self) -> None:
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
