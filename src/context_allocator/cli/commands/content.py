"""Content commands: context, instructions-for, docs, agent, search, list.

These commands read instruction files, docs and agent guides from the
content root and run them through the router or the truncator.
"""

from typing import Optional

import click

from context_allocator.cli.logging import cli_command
from context_allocator.cli.output import emit_error, emit_exception, emit_success
from context_allocator.cli.registry import get_context
from context_allocator.core.allocation import CONTENT_CATEGORIES, Category
from context_allocator.core.errors import ContextAllocatorError
from context_allocator.core.providers import DEFAULT_SEARCH_LIMIT, REFERENCE_DOC_LIMIT
from context_allocator.core.selection import truncate


@click.command("context")
@click.argument("task")
@click.option("--file-type", help="Language or file extension of the code being worked on.")
@click.option("--budget", type=int, help="Total token budget for this request only.")
@click.pass_context
@cli_command("context")
def context_cmd(
    ctx: click.Context,
    task: str,
    file_type: Optional[str],
    budget: Optional[int],
) -> None:
    """Select budget-compliant context for TASK.

    Ranks the categories for the task, gathers candidate files from the
    content root and selects them under the request budget.
    """
    cli_ctx = get_context(ctx)
    try:
        router = cli_ctx.router()
        items = cli_ctx.provider().items_for_task(task, file_type=file_type)
        bundle = router.route(task, items, budget_override=budget)
    except ContextAllocatorError as e:
        emit_exception(e)

    warnings = []
    if bundle.files_loaded == 0:
        warnings.append("No content fit the budget or matched the task")
    emit_success(bundle.to_dict(), warnings=warnings)


@click.command("instructions-for")
@click.argument("filepath")
@click.option("--max-chars", type=int, help="Truncate the instructions to this many characters.")
@click.pass_context
@cli_command("instructions-for")
def instructions_for_cmd(ctx: click.Context, filepath: str, max_chars: Optional[int]) -> None:
    """Show the instruction file that applies to FILEPATH (by extension)."""
    if max_chars is not None and max_chars < 0:
        emit_error(
            "--max-chars must be non-negative",
            code="VALIDATION_ERROR",
            error_type="validation",
            details={"field": "max_chars", "value": max_chars},
        )

    cli_ctx = get_context(ctx)
    try:
        provider = cli_ctx.provider()
        item = provider.instruction_for_file(filepath)
    except ContextAllocatorError as e:
        emit_exception(e)

    data = {
        "file": filepath,
        "instructions": item.source_id,
        "content": item.content,
        "length": len(item.content),
        "tokens": provider.estimator.estimate_tokens(item.content),
    }
    if max_chars is not None:
        outcome = truncate(item.content, max_chars, estimator=provider.estimator)
        data["content"] = outcome.content
        data["truncation"] = {k: v for k, v in outcome.to_dict().items() if k != "content"}
    emit_success(data)


@click.command("docs")
@click.argument("topic")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=REFERENCE_DOC_LIMIT,
    show_default=True,
    help="Maximum number of docs.",
)
@click.pass_context
@cli_command("docs")
def docs_cmd(ctx: click.Context, topic: str, limit: int) -> None:
    """Show intro summaries of reference docs whose name contains TOPIC."""
    try:
        result = get_context(ctx).provider().reference_docs(topic, limit=limit)
    except ContextAllocatorError as e:
        emit_exception(e)
    emit_success(result)


@click.command("agent")
@click.argument("name")
@click.pass_context
@cli_command("agent")
def agent_cmd(ctx: click.Context, name: str) -> None:
    """Show the opening lines of the agent guide NAME (e.g. api-agent)."""
    try:
        result = get_context(ctx).provider().agent_guide(name)
    except ContextAllocatorError as e:
        emit_exception(e)
    emit_success(result)


@click.command("search")
@click.argument("keyword")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=DEFAULT_SEARCH_LIMIT,
    show_default=True,
    help="Maximum number of results.",
)
@click.pass_context
@cli_command("search")
def search_cmd(ctx: click.Context, keyword: str, limit: int) -> None:
    """Search instruction files for KEYWORD (case-insensitive)."""
    try:
        result = get_context(ctx).provider().search(keyword, limit=limit)
    except ContextAllocatorError as e:
        emit_exception(e)
    emit_success(result)


@click.command("list")
@click.option(
    "--category",
    type=click.Choice([c.value for c in CONTENT_CATEGORIES]),
    default=Category.INSTRUCTIONS.value,
    show_default=True,
    help="Content category to list.",
)
@click.pass_context
@cli_command("list")
def list_cmd(ctx: click.Context, category: str) -> None:
    """List available content files with sizes and token estimates."""
    try:
        result = get_context(ctx).provider().list_available(Category(category))
    except ContextAllocatorError as e:
        emit_exception(e)
    emit_success(result)
