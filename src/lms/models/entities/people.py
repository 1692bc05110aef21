"""
Translator and Writer - people credited on books.

Both carry an optional portrait (stored in the blob store) and a review
rating between 0 and 5.
"""

from pydantic import Field

from ..core import CoreModel, ImageRef


class Translator(CoreModel):
    """Book translator."""

    name: str = Field(..., min_length=2, max_length=100, description="Unique translator name")
    summary: str | None = Field(default=None, max_length=1000)
    review: float | None = Field(default=None, ge=0, le=5, description="Review rating")
    image: ImageRef | None = Field(default=None, description="Portrait")
    is_active: bool = Field(default=True)


class Writer(CoreModel):
    """Book writer."""

    name: str = Field(..., min_length=2, max_length=100, description="Unique writer name")
    summary: str | None = Field(default=None, max_length=1000)
    review: float | None = Field(default=None, ge=0, le=5, description="Review rating")
    books_count: int = Field(default=0, ge=0, description="Books available for the writer")
    image: ImageRef | None = Field(default=None, description="Portrait")
    is_active: bool = Field(default=True)
