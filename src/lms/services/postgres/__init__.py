"""Postgres document store."""

from .repository import PostgresRepository
from .service import PostgresService

__all__ = ["PostgresRepository", "PostgresService"]
