"""context-allocator CLI entry point.

JSON-only output.
"""

import click

from context_allocator.cli.config import create_context
from context_allocator.cli.output import emit_exception
from context_allocator.cli.registry import register_all_commands
from context_allocator.core.errors import ContextAllocatorError


@click.group()
@click.option(
    "--config",
    "config_file",
    envvar="CONTEXT_ALLOCATOR_CONFIG_FILE",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to a context-allocator TOML config file",
)
@click.option(
    "--content-root",
    type=click.Path(exists=False, file_okay=False),
    help="Override the content root (instructions/, docs/, agents/)",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, content_root: str | None) -> None:
    """Token budget allocation and context selection for AI assistants.

    All commands output JSON.
    """
    ctx.ensure_object(dict)
    try:
        cli_context = create_context(content_root=content_root, config_file=config_file)
    except ContextAllocatorError as e:
        emit_exception(e)
    cli_context.config.setup_logging()
    ctx.obj["cli_context"] = cli_context


# Register all commands
register_all_commands(cli)


if __name__ == "__main__":
    cli()
