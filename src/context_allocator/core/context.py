"""Request correlation context.

Correlation IDs travel through ``contextvars`` so log records and response
envelopes produced while serving one request share the same identifier.

Usage:
    from context_allocator.core.context import sync_request_context, get_correlation_id

    with sync_request_context() as ctx:
        print(ctx.correlation_id)  # e.g., "req_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Generator, Optional

__all__ = [
    "correlation_id_var",
    "start_time_var",
    "RequestContext",
    "generate_correlation_id",
    "sync_request_context",
    "get_correlation_id",
    "get_start_time",
]

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
"""Request correlation ID for tracing requests across components."""

start_time_var: ContextVar[float] = ContextVar("start_time", default=0.0)
"""Request start time as Unix timestamp."""


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID with optional prefix.

    Format: {prefix}_{12_hex_chars}
    Example: "req_a1b2c3d4e5f6"
    """
    return f"{prefix}_{secrets.token_hex(6)}"


@dataclass(frozen=True)
class RequestContext:
    """Snapshot of the active request context."""

    correlation_id: str
    start_time: float

    @property
    def elapsed_ms(self) -> float:
        return round((time.time() - self.start_time) * 1000, 2)


@contextmanager
def sync_request_context(
    correlation_id: Optional[str] = None,
    *,
    prefix: str = "req",
) -> Generator[RequestContext, None, None]:
    """Set correlation ID and start time for the duration of a block.

    Args:
        correlation_id: Explicit ID (generated if None)
        prefix: Prefix for generated IDs
    """
    ctx = RequestContext(
        correlation_id=correlation_id or generate_correlation_id(prefix),
        start_time=time.time(),
    )
    id_token = correlation_id_var.set(ctx.correlation_id)
    time_token = start_time_var.set(ctx.start_time)
    try:
        yield ctx
    finally:
        correlation_id_var.reset(id_token)
        start_time_var.reset(time_token)


def get_correlation_id() -> str:
    """Current correlation ID, or empty string outside a request."""
    return correlation_id_var.get()


def get_start_time() -> float:
    return start_time_var.get()
