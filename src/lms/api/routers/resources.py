"""
Generic resource routes.

build_resource_router wires one ResourceController onto the standard routes:

    POST   /api/v1/{resource}              create (JSON or multipart with image)
    GET    /api/v1/{resource}              list (?page&limit&sort&<filters>)
    DELETE /api/v1/{resource}?ids=a,b      bulk delete
    GET    /api/v1/{resource}/me           own record (self-service resources)
    PUT    /api/v1/{resource}/me           update own record
    GET    /api/v1/{resource}/{id}         fetch one
    PUT    /api/v1/{resource}/{id}         update one
    DELETE /api/v1/{resource}/{id}         delete one

Routes only convert the request and render the Envelope; status codes come
from envelope.status.
"""

from typing import Awaitable, Callable, Iterable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...models.core import Envelope, Requester
from ...services import ServiceContainer
from ...services.resource_service import Access, ResourceDefinition
from ...services.resources import CATALOGUE, USERS
from ..deps import InvalidBody, get_requester, route_of, to_inbound
from ..dispatch import (
    CRUD_OPERATIONS,
    InboundRequest,
    Operation,
    ResourceController,
    bad_request,
)

API_PREFIX = "/api/v1"

Handler = Callable[[InboundRequest], Awaitable[Envelope]]


def render(envelope: Envelope) -> JSONResponse:
    return JSONResponse(status_code=envelope.status, content=envelope.to_wire())


async def run(
    request: Request,
    requester: Requester | None,
    handler: Handler,
    with_body: bool = False,
) -> JSONResponse:
    try:
        inbound = await to_inbound(request, requester, with_body=with_body)
    except InvalidBody as e:
        envelope = bad_request(str(e))
        envelope.route = route_of(request)
        return render(envelope)
    return render(await handler(inbound))


def build_resource_router(
    prefix: str,
    controller: ResourceController,
    operations: Iterable[Operation] = CRUD_OPERATIONS,
) -> APIRouter:
    """Router exposing the given operations of one controller."""
    operations = tuple(operations)
    controller.check(operations)
    router = APIRouter(prefix=prefix, tags=[controller.resource])

    if Operation.CREATE in operations:

        @router.post("")
        async def create(request: Request, requester: Requester | None = Depends(get_requester)):
            return await run(request, requester, controller.create, with_body=True)

    if Operation.LIST in operations:

        @router.get("")
        async def get_list(request: Request, requester: Requester | None = Depends(get_requester)):
            return await run(request, requester, controller.get_list)

    if Operation.DELETE_LIST in operations:

        @router.delete("")
        async def delete_list(
            request: Request, requester: Requester | None = Depends(get_requester)
        ):
            return await run(request, requester, controller.delete_list)

    # /me is registered before /{id} so it is not captured as an id
    if Operation.GET_SELF in operations:

        @router.get("/me")
        async def get_own(request: Request, requester: Requester | None = Depends(get_requester)):
            return await run(request, requester, controller.get_by_requester)

    if Operation.UPDATE_SELF in operations:

        @router.put("/me")
        async def update_own(
            request: Request, requester: Requester | None = Depends(get_requester)
        ):
            return await run(request, requester, controller.update_by_requester, with_body=True)

    if Operation.GET in operations:

        @router.get("/{id}")
        async def get_by_id(
            id: str, request: Request, requester: Requester | None = Depends(get_requester)
        ):
            return await run(request, requester, controller.get_by_id)

    if Operation.UPDATE in operations:

        @router.put("/{id}")
        async def update_by_id(
            id: str, request: Request, requester: Requester | None = Depends(get_requester)
        ):
            return await run(request, requester, controller.update_by_id, with_body=True)

    if Operation.DELETE in operations:

        @router.delete("/{id}")
        async def delete_by_id(
            id: str, request: Request, requester: Requester | None = Depends(get_requester)
        ):
            return await run(request, requester, controller.delete_by_id)

    return router


def operations_for(definition: ResourceDefinition) -> tuple[Operation, ...]:
    if definition.policy.write is Access.NOBODY:
        operations = (Operation.LIST, Operation.GET)
    else:
        operations = CRUD_OPERATIONS
    if definition is USERS:
        operations += (Operation.GET_SELF, Operation.UPDATE_SELF)
    return operations


def resource_routers(container: ServiceContainer) -> list[APIRouter]:
    """One router per catalogue resource."""
    routers = []
    for definition in CATALOGUE:
        controller = ResourceController(definition.name, container.service(definition.name))
        prefix = f"{API_PREFIX}/{definition.name.replace('_', '-')}"
        routers.append(build_resource_router(prefix, controller, operations_for(definition)))
    return routers
