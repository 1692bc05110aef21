"""
Controller dispatch - adapts an inbound request to service operations.

Framework independent: the HTTP layer converts its request into an
InboundRequest, calls one controller method and renders the returned
Envelope using envelope.status as the transport status code.

Controllers hold no business logic. Each method:
- resolves the parameters its service operation expects
- logs one operational line (warning level for deletions)
- returns the service Envelope unchanged apart from its route

The outer guard turns anything that still escapes into a 500 envelope with
a logged stack trace, so callers always receive an Envelope.
"""

import functools
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..models.core import Envelope, ErrorKind, Requester, UploadedFile, error_response
from ..services.capabilities import (
    Creatable,
    Deletable,
    Fetchable,
    Listable,
    ProfileViewer,
    SelfService,
    Updatable,
)
from ..services.errors import describe_validation_error
from ..services.query import QueryRequest


@dataclass
class InboundRequest:
    """Transport-neutral request."""

    requester: Requester | None = None
    params: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)
    file: UploadedFile | None = None
    route: str | None = None

    @property
    def requester_id(self) -> str:
        return self.requester.id if self.requester else "anonymous"


class Operation(str, Enum):
    CREATE = "create"
    LIST = "get_list"
    GET = "get_by_id"
    GET_SELF = "get_by_requester"
    UPDATE = "update_by_id"
    UPDATE_SELF = "update_by_requester"
    DELETE = "delete_by_id"
    DELETE_LIST = "delete_list"


REQUIRED_CAPABILITY = {
    Operation.CREATE: Creatable,
    Operation.LIST: Listable,
    Operation.GET: Fetchable,
    Operation.GET_SELF: SelfService,
    Operation.UPDATE: Updatable,
    Operation.UPDATE_SELF: SelfService,
    Operation.DELETE: Deletable,
    Operation.DELETE_LIST: Deletable,
}

CRUD_OPERATIONS = (
    Operation.CREATE,
    Operation.LIST,
    Operation.GET,
    Operation.UPDATE,
    Operation.DELETE,
    Operation.DELETE_LIST,
)


def guarded(handler):
    """Outer guard: always return an Envelope carrying the request route."""

    @functools.wraps(handler)
    async def wrapper(self, request: InboundRequest) -> Envelope:
        try:
            envelope = await handler(self, request)
        except Exception:
            logger.exception(f"Unhandled error in {self.resource}.{handler.__name__}")
            envelope = error_response(
                "Internal server error.",
                HTTPStatus.INTERNAL_SERVER_ERROR,
                ErrorKind.INTERNAL,
            )
        envelope.route = request.route
        return envelope

    return wrapper


def bad_request(message: str) -> Envelope:
    return error_response(message, HTTPStatus.BAD_REQUEST, ErrorKind.VALIDATION)


def parse_ids(raw: Any) -> list[str]:
    """Comma separated id list ('a,b, c') -> ['a', 'b', 'c']."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        raw = ",".join(str(r) for r in raw)
    return [part.strip() for part in str(raw).split(",") if part.strip()]


class ResourceController:
    """Dispatches inbound requests to one resource service."""

    def __init__(self, resource: str, service: Any):
        self.resource = resource
        self.service = service

    def supports(self, operation: Operation) -> bool:
        return isinstance(self.service, REQUIRED_CAPABILITY[operation])

    def check(self, operations) -> None:
        """Fail fast when the service lacks a capability an operation needs."""
        missing = [op.value for op in operations if not self.supports(op)]
        if missing:
            raise TypeError(
                f"{type(self.service).__name__} cannot serve {self.resource}: {', '.join(missing)}"
            )

    @guarded
    async def create(self, request: InboundRequest) -> Envelope:
        service: Creatable = self.service
        logger.info(f"Create {self.resource} | requester={request.requester_id} | {request.route}")
        return await service.create(request.requester, request.body, request.file)

    @guarded
    async def get_list(self, request: InboundRequest) -> Envelope:
        service: Listable = self.service
        logger.info(f"List {self.resource} | requester={request.requester_id} | {request.route}")
        try:
            query = QueryRequest.model_validate(request.query)
        except ValidationError as e:
            return bad_request(describe_validation_error(e))
        return await service.get_list(request.requester, query)

    @guarded
    async def get_by_id(self, request: InboundRequest) -> Envelope:
        service: Fetchable = self.service
        record_id = request.params.get("id")
        logger.info(
            f"Get {self.resource} {record_id} | requester={request.requester_id} | {request.route}"
        )
        return await service.get_by_id(request.requester, record_id)

    @guarded
    async def get_by_requester(self, request: InboundRequest) -> Envelope:
        service: SelfService = self.service
        logger.info(f"Get own {self.resource} | requester={request.requester_id} | {request.route}")
        return await service.get_by_requester(request.requester)

    @guarded
    async def update_by_id(self, request: InboundRequest) -> Envelope:
        service: Updatable = self.service
        record_id = request.params.get("id")
        logger.info(
            f"Update {self.resource} {record_id} | requester={request.requester_id} | {request.route}"
        )
        return await service.update_by_id(request.requester, record_id, request.body, request.file)

    @guarded
    async def update_by_requester(self, request: InboundRequest) -> Envelope:
        service: SelfService = self.service
        logger.info(
            f"Update own {self.resource} | requester={request.requester_id} | {request.route}"
        )
        return await service.update_by_requester(request.requester, request.body, request.file)

    @guarded
    async def delete_by_id(self, request: InboundRequest) -> Envelope:
        service: Deletable = self.service
        record_id = request.params.get("id")
        logger.warning(
            f"Delete {self.resource} {record_id} | requester={request.requester_id} | {request.route}"
        )
        return await service.delete_by_id(request.requester, record_id)

    @guarded
    async def delete_list(self, request: InboundRequest) -> Envelope:
        service: Deletable = self.service
        ids = parse_ids(request.query.get("ids"))
        if not ids:
            return bad_request("Please provide ids to delete.")
        logger.warning(
            f"Delete {len(ids)} {self.resource} | requester={request.requester_id} | {request.route}"
        )
        return await service.delete_by_list(request.requester, ids)


class ProfileController:
    """Dispatches profile views to the privacy projection."""

    resource = "profiles"

    def __init__(self, service: ProfileViewer):
        if not isinstance(service, ProfileViewer):
            raise TypeError(f"{type(service).__name__} cannot serve profiles")
        self.service = service

    @guarded
    async def get_profile(self, request: InboundRequest) -> Envelope:
        username = request.params.get("username")
        logger.info(f"View profile {username} | requester={request.requester_id} | {request.route}")
        return await self.service.get_profile(request.requester, username)
