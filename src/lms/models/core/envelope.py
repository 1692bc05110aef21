"""
Envelope - the uniform result of every service and dispatch operation.

Serialized shape:
    {
      "success": true,
      "status": 200,
      "message": "3 pronouns fetched successfully.",
      "data": {...},
      "route": "/api/v1/pronouns?page=1",
      "timeStamp": "2024-05-01T10:00:00Z"
    }

success=False with a 2xx status is used for benign outcomes such as an
empty list or a bulk delete that removed nothing; real failures carry a
4xx/5xx status. The ErrorKind is kept on the object for callers but is
not part of the wire shape.
"""

from datetime import datetime
from enum import Enum
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ...utils.date_utils import utc_now


class ErrorKind(str, Enum):
    """Failure taxonomy shared by all operations."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


class Envelope(BaseModel):
    """Uniform success/error response wrapper."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    status: int = Field(default=int(HTTPStatus.OK), description="HTTP status code")
    message: str
    data: Any = Field(default_factory=dict)
    route: str | None = None
    time_stamp: datetime = Field(
        default_factory=utc_now,
        serialization_alias="timeStamp",
        validation_alias="timeStamp",
    )
    error: ErrorKind | None = Field(default=None, exclude=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict in the published envelope shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


class PaginatedResult(BaseModel):
    """One page of a resource list."""

    items: list[Any] = Field(default_factory=list)
    total_items: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    current_page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)
    sort: str = "-created_at"


class DeletionSummary(BaseModel):
    """Outcome counts of a bulk delete."""

    deleted: int = 0
    not_found: int = 0
    failed: int = 0


def success_response(
    data: Any,
    message: str,
    status: int = HTTPStatus.OK,
) -> Envelope:
    """Successful envelope."""
    return Envelope(success=True, status=int(status), message=message, data=data)


def error_response(
    message: str,
    status: int = HTTPStatus.BAD_REQUEST,
    kind: ErrorKind | None = None,
    data: Any = None,
) -> Envelope:
    """Unsuccessful envelope; data defaults to an empty object."""
    return Envelope(
        success=False,
        status=int(status),
        message=message,
        data={} if data is None else data,
        error=kind,
    )
