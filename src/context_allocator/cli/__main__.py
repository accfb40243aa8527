"""Enables running the CLI via: python -m context_allocator.cli"""

from context_allocator.cli.main import cli

if __name__ == "__main__":
    cli()
