"""CLI command modules."""

from context_allocator.cli.commands.budget import allocation_cmd, rank_cmd, truncate_cmd
from context_allocator.cli.commands.content import (
    agent_cmd,
    context_cmd,
    docs_cmd,
    instructions_for_cmd,
    list_cmd,
    search_cmd,
)

__all__ = [
    "allocation_cmd",
    "rank_cmd",
    "truncate_cmd",
    "context_cmd",
    "instructions_for_cmd",
    "docs_cmd",
    "agent_cmd",
    "list_cmd",
    "search_cmd",
]
