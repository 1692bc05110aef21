"""
Database management commands.

Usage:
    lms db init                      # Create collection tables and unique indexes
    lms db init -c postgresql://...  # Against a specific database
    lms db tables                    # Show the tables init would create
"""

import asyncio

import click
from loguru import logger

from ...services.postgres import PostgresService
from ...services.postgres.sql_builder import build_create_table
from ...services.resources import collections


async def _init(connection: str | None) -> None:
    db = PostgresService(connection)
    await db.connect()
    try:
        await db.ensure_tables(collections())
    finally:
        await db.disconnect()


@click.command("init")
@click.option(
    "--connection",
    "-c",
    help="PostgreSQL connection string (overrides POSTGRES__CONNECTION_STRING)",
)
def init_command(connection: str | None):
    """Create one document table per resource with its unique indexes."""
    try:
        asyncio.run(_init(connection))
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise click.Abort() from e
    click.echo(f"✓ Initialized {len(collections())} tables")


@click.command("tables")
def tables_command():
    """Print the DDL that init applies."""
    for table, unique_fields in collections().items():
        for statement in build_create_table(table, unique_fields):
            click.echo(f"{statement};")


def register_commands(db_group):
    """Register database commands."""
    db_group.add_command(init_command)
    db_group.add_command(tables_command)
