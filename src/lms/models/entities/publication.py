"""Publication - publishing houses."""

from pydantic import Field

from ..core import CoreModel


class Publication(CoreModel):
    """Publishing house."""

    name: str = Field(..., min_length=2, max_length=100, description="Unique publication name")
    is_active: bool = Field(default=True, description="Whether the publication is listed")
