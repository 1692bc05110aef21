"""
CoreModel - Base model for all LMS entities.

All catalogue entities (Pronouns, Faqs, Subjects, Translators, Users, ...)
inherit from CoreModel, which provides:
- Identity (id - opaque string assigned by the repository on create)
- Temporal tracking (created_at, updated_at)
- Audit stamping (created_by, updated_by)

created_by / updated_by hold the acting requester's id. When a record is
read with Expand.ACTORS the repository replaces them with ActorRef value
objects describing the actor.
"""

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ...utils.date_utils import utc_now


class ActorRef(BaseModel):
    """Materialized summary of the actor behind created_by / updated_by."""

    id: str = Field(..., description="Actor identifier")
    name: str | None = Field(default=None, description="Actor display name")
    email: str | None = Field(default=None, description="Actor contact email")


class CoreModel(BaseModel):
    """
    Base model for all LMS entities.

    Provides system-level fields for:
    - Identity management (id)
    - Temporal tracking (created_at, updated_at)
    - Audit references (created_by, updated_by)
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(
        default=None,
        description="Unique identifier, immutable once assigned by the repository",
    )
    created_at: datetime = Field(
        default_factory=utc_now, description="Entity creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=utc_now, description="Last update timestamp"
    )
    created_by: Union[str, ActorRef, None] = Field(
        default=None, description="Requester that created the entity"
    )
    updated_by: Union[str, ActorRef, None] = Field(
        default=None, description="Requester that last updated the entity"
    )

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        # Fixed-width ISO text keeps stored timestamps sortable as strings
        return value.isoformat(timespec="microseconds")
