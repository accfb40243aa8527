"""context-allocator CLI.

JSON-only output: every command emits a response-v2 envelope on stdout,
errors go to stderr with exit code 1.
"""

from context_allocator.cli.config import CLIContext, create_context
from context_allocator.cli.logging import (
    CLILogContext,
    cli_command,
    get_request_id,
    set_request_id,
)
from context_allocator.cli.main import cli
from context_allocator.cli.output import emit, emit_error, emit_exception, emit_success
from context_allocator.cli.registry import get_context, set_context

__all__ = [
    # Entry point
    "cli",
    # Context
    "CLIContext",
    "create_context",
    "get_context",
    "set_context",
    # Output
    "emit",
    "emit_error",
    "emit_exception",
    "emit_success",
    # Logging
    "CLILogContext",
    "cli_command",
    "get_request_id",
    "set_request_id",
]
