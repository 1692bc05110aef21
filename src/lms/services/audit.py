"""
AuditTrail - append-only activity log.

Every mutating resource operation records exactly one entry (bulk deletes
record one entry for the whole batch). Entries are never updated or deleted.
"""

import json
from typing import Any, Iterable

from loguru import logger

from ..models.core import Requester
from ..models.entities import ActionType, ActivityLog
from .repositories import Repository


def to_details(value: Any) -> str | None:
    """JSON snapshot stored in ActivityLog.details."""
    if value is None:
        return None
    if hasattr(value, "model_dump_json"):
        return value.model_dump_json()
    return json.dumps(value, default=str)


class AuditTrail:
    """Writes ActivityLog entries through its repository (append only)."""

    def __init__(self, repository: Repository[ActivityLog]):
        self.repository = repository

    async def record(
        self,
        requester: Requester | None,
        action: ActionType,
        description: str,
        details: Any = None,
        affected_ids: Iterable[str] = (),
    ) -> ActivityLog:
        entry = ActivityLog(
            actor=requester.id if requester else None,
            action=action,
            description=description,
            details=to_details(details),
            affected_ids=[str(i) for i in affected_ids],
            created_by=requester.id if requester else None,
        )
        saved = await self.repository.create(entry)
        logger.debug(f"Audit {action.value}: {description} ({len(entry.affected_ids)} ids)")
        return saved
