"""
Requester - the identity on whose behalf an operation executes.

Authentication is external: the transport layer resolves headers or a
session into a Requester (or None for anonymous calls) before dispatch.
"""

from pydantic import BaseModel, Field, field_validator


class Requester(BaseModel):
    """Authenticated caller identity."""

    id: str = Field(..., min_length=1, description="Requester identifier")
    is_admin: bool = Field(default=False, description="Administrative privileges")
    name: str | None = Field(default=None, description="Display name, if known")

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value):
        """Identifiers are compared as strings regardless of their source type."""
        return str(value).strip() if value is not None else value

    def is_same(self, other_id) -> bool:
        """True when other_id identifies this requester."""
        return other_id is not None and str(other_id).strip() == self.id
