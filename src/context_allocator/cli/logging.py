"""Structured logging hooks for CLI commands.

Each command runs inside a request context so its log lines and its
response envelope share one ``cli_`` correlation id.
"""

import logging
import time
from contextvars import Token
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from context_allocator.core.context import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    start_time_var,
)

__all__ = [
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "cli_command",
    "CLILogContext",
]

T = TypeVar("T")

logger = logging.getLogger("context_allocator.cli")


def generate_request_id() -> str:
    """Generate a request ID for CLI command tracking, e.g. ``cli_a1b2c3d4e5f6``."""
    return generate_correlation_id("cli")


def get_request_id() -> str:
    return get_correlation_id()


def set_request_id(request_id: str) -> None:
    correlation_id_var.set(request_id)


class CLILogContext:
    """Context manager for CLI command logging context.

    Generates and sets a request ID for the duration of the context.

    Example:
        >>> with CLILogContext() as ctx:
        ...     logger.info("Processing", extra={"request_id": ctx.request_id})
    """

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self._tokens: tuple[Token, Token] | None = None

    def __enter__(self) -> "CLILogContext":
        self._tokens = (
            correlation_id_var.set(self.request_id),
            start_time_var.set(time.time()),
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._tokens is not None:
            id_token, time_token = self._tokens
            correlation_id_var.reset(id_token)
            start_time_var.reset(time_token)
            self._tokens = None


def cli_command(
    command_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for CLI commands.

    Generates a request ID and logs command start and end with duration.

    Example:
        >>> @cli_command("rank")
        ... def rank_cmd(ctx, task):
        ...     ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = command_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with CLILogContext():
                start = time.perf_counter()
                success = True
                logger.debug(f"CLI command started: {name}", extra={"command": name})
                try:
                    return func(*args, **kwargs)
                except BaseException:
                    success = False
                    raise
                finally:
                    logger.debug(
                        f"CLI command completed: {name}",
                        extra={
                            "command": name,
                            "success": success,
                            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                        },
                    )

        return wrapper

    return decorator
