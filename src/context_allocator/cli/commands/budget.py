"""Budget commands: allocation, rank, truncate.

These commands exercise the engine directly and never read the content
root.
"""

from pathlib import Path
from typing import Optional

import click

from context_allocator.cli.logging import cli_command
from context_allocator.cli.output import emit_error, emit_exception, emit_success
from context_allocator.cli.registry import get_context
from context_allocator.core.allocation import PRESETS
from context_allocator.core.errors import ConfigurationError
from context_allocator.core.priority import PriorityRanker
from context_allocator.core.providers import read_text_lenient
from context_allocator.core.selection import truncate


@click.command("allocation")
@click.option("--total", type=int, help="Total token budget override.")
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS), case_sensitive=False),
    help="Named weight preset.",
)
@click.pass_context
@cli_command("allocation")
def allocation_cmd(ctx: click.Context, total: Optional[int], preset: Optional[str]) -> None:
    """Show the per-category budget allocation.

    Includes the normalized percentage, the token budget and the character
    limit of every category.
    """
    cli_ctx = get_context(ctx)
    try:
        allocator = cli_ctx.allocator(total=total, preset=preset)
    except ConfigurationError as e:
        emit_exception(e)

    warnings = []
    if allocator.allocation().normalized:
        warnings.append(
            f"Weights total {allocator.config.weight_sum:g}%, normalized to 100%"
        )
    emit_success(allocator.summary(), warnings=warnings)


@click.command("rank")
@click.argument("task")
@click.option("--total", type=int, help="Total token budget override.")
@click.pass_context
@cli_command("rank")
def rank_cmd(ctx: click.Context, task: str, total: Optional[int]) -> None:
    """Rank content categories for TASK and show the reallocated budgets."""
    cli_ctx = get_context(ctx)
    try:
        allocator = cli_ctx.allocator(total=total)
    except ConfigurationError as e:
        emit_exception(e)

    ranker = PriorityRanker()
    assignment = ranker.rank(task)
    reallocated = ranker.reallocate(task, allocator.allocation(), assignment=assignment)

    emit_success(
        {
            "task": task,
            **assignment.to_dict(),
            "allocation": reallocated.to_dict(),
        }
    )


@click.command("truncate")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--budget-chars", type=int, help="Character budget.")
@click.option("--budget-tokens", type=int, help="Token budget (converted to characters).")
@click.option("--show-content/--no-show-content", default=True, help="Include the truncated text.")
@click.pass_context
@cli_command("truncate")
def truncate_cmd(
    ctx: click.Context,
    file: Path,
    budget_chars: Optional[int],
    budget_tokens: Optional[int],
    show_content: bool,
) -> None:
    """Truncate FILE to a budget, preferring sentence and heading boundaries."""
    if (budget_chars is None) == (budget_tokens is None):
        emit_error(
            "Exactly one of --budget-chars or --budget-tokens is required",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Pass --budget-chars N or --budget-tokens N",
            details={"field": "budget"},
        )
    if not file.is_file():
        emit_error(
            f"File not found: {file}",
            code="NOT_FOUND",
            error_type="not_found",
            remediation="Check the file path",
            details={"file": str(file)},
        )

    try:
        estimator = get_context(ctx).allocator().estimator
    except ConfigurationError as e:
        emit_exception(e)
    if budget_chars is None:
        budget_chars = estimator.char_limit_for(budget_tokens)

    text = read_text_lenient(file)
    outcome = truncate(text, budget_chars, estimator=estimator)

    data = {"file": str(file), "budget_chars": budget_chars, **outcome.to_dict()}
    if not show_content:
        data.pop("content", None)
    emit_success(data)
