"""Admin - staff accounts that manage the catalogue."""

from pydantic import Field

from ..core import CoreModel, ImageRef


class Admin(CoreModel):
    """Administrator profile."""

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(
        ...,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Unique contact email",
    )
    department: str | None = Field(default=None, max_length=100)
    designation: str | None = Field(default=None, max_length=100)
    image: ImageRef | None = None
    is_active: bool = True
