"""Repository pattern for entity persistence."""

from .base import Repository
from .memory import InMemoryRepository

__all__ = ["InMemoryRepository", "Repository"]
