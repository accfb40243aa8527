"""Command registry for the CLI."""

from typing import Optional

import click

from context_allocator.cli.config import CLIContext

# Module-level storage for CLI context (for testing)
_cli_context: Optional[CLIContext] = None


def set_context(ctx: Optional[CLIContext]) -> None:
    """Set the CLI context at module level.

    Primarily used for testing when not using Click's context.
    """
    global _cli_context
    _cli_context = ctx


def get_context(ctx: Optional[click.Context] = None) -> CLIContext:
    """Get CLI context from Click context or module-level storage.

    Raises:
        RuntimeError: If no context is available.
    """
    if ctx is not None:
        return ctx.obj["cli_context"]

    if _cli_context is not None:
        return _cli_context

    raise RuntimeError("No CLI context available. Call set_context() first.")


def register_all_commands(cli: click.Group) -> None:
    """Register all commands with the CLI.

    Command modules are imported lazily to avoid circular imports.
    """
    from context_allocator.cli.commands import (
        agent_cmd,
        allocation_cmd,
        context_cmd,
        docs_cmd,
        instructions_for_cmd,
        list_cmd,
        rank_cmd,
        search_cmd,
        truncate_cmd,
    )

    cli.add_command(allocation_cmd)
    cli.add_command(rank_cmd)
    cli.add_command(truncate_cmd)
    cli.add_command(context_cmd)
    cli.add_command(instructions_for_cmd)
    cli.add_command(docs_cmd)
    cli.add_command(agent_cmd)
    cli.add_command(search_cmd)
    cli.add_command(list_cmd)

    @cli.command("version")
    def version() -> None:
        """Show CLI version information."""
        from context_allocator import __version__
        from context_allocator.cli.output import emit_success

        emit_success({"name": "context-allocator", "version": __version__, "json_only": True})
