"""
Service capabilities.

Dispatch depends on these protocols rather than on concrete services, so a
resource exposes exactly the operations its service implements and every
handler is bound to a real method at construction time.
"""

from typing import Any, Mapping, Protocol, runtime_checkable

from ..models.core import Envelope, Requester, UploadedFile
from .query import QueryRequest


@runtime_checkable
class Fetchable(Protocol):
    async def get_by_id(self, requester: Requester | None, record_id: str) -> Envelope: ...


@runtime_checkable
class Listable(Protocol):
    async def get_list(self, requester: Requester | None, query: QueryRequest) -> Envelope: ...


@runtime_checkable
class Deletable(Protocol):
    async def delete_by_id(self, requester: Requester | None, record_id: str) -> Envelope: ...

    async def delete_by_list(self, requester: Requester | None, ids: list[str]) -> Envelope: ...


@runtime_checkable
class Creatable(Protocol):
    async def create(
        self,
        requester: Requester | None,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope: ...


@runtime_checkable
class Updatable(Protocol):
    async def update_by_id(
        self,
        requester: Requester | None,
        record_id: str,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope: ...


@runtime_checkable
class SelfService(Protocol):
    """Operations scoped to the requester's own record."""

    async def get_by_requester(self, requester: Requester | None) -> Envelope: ...

    async def update_by_requester(
        self,
        requester: Requester | None,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope: ...


@runtime_checkable
class ProfileViewer(Protocol):
    async def get_profile(self, requester: Requester | None, username: str) -> Envelope: ...
