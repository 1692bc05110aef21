"""
LMS CLI entry point.

Usage:
    lms serve --reload
    lms db init
"""

import sys

import click
from loguru import logger


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """LMS - Library management API CLI."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


@cli.group()
def db():
    """Database operations."""


# Register commands
from .commands.db import register_commands as register_db_commands  # noqa: E402
from .commands.serve import register_command as register_serve_command  # noqa: E402

register_db_commands(db)
register_serve_command(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
