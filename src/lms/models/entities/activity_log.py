"""
ActivityLog - append-only audit trail of administrative actions.

Entries are written by the audit trail on every mutation and are never
updated or deleted.
"""

from enum import Enum

from pydantic import Field

from ..core import CoreModel


class ActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    FETCH = "fetch"
    LOGIN = "login"
    ERROR = "error"


class ActivityLog(CoreModel):
    """Single audit entry."""

    actor: str | None = Field(default=None, description="Requester id, None for anonymous")
    action: ActionType
    description: str
    details: str | None = Field(default=None, description="JSON snapshot of the outcome")
    affected_ids: list[str] = Field(default_factory=list)
