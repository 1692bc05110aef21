"""
FastAPI dependencies and request conversion.

Authentication happens upstream (gateway or auth service); it forwards the
caller's identity in headers:
- X-User-Id    -> Requester.id (absent = anonymous)
- X-User-Role  -> Requester.is_admin when "admin"
"""

import json
from typing import Any

from fastapi import Header, Request
from starlette.datastructures import UploadFile

from ..models.core import Requester, UploadedFile
from ..services import ServiceContainer
from .dispatch import InboundRequest

IMAGE_FIELD = "image"


class InvalidBody(ValueError):
    """Request body could not be read as an object."""


def get_requester(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
    x_user_name: str | None = Header(default=None, alias="X-User-Name"),
) -> Requester | None:
    if not x_user_id or not x_user_id.strip():
        return None
    return Requester(
        id=x_user_id,
        is_admin=(x_user_role or "").strip().lower() == "admin",
        name=x_user_name,
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def to_uploaded_file(upload: UploadFile) -> UploadedFile:
    return UploadedFile(
        content=await upload.read(),
        mime_type=upload.content_type or "application/octet-stream",
        original_name=upload.filename or "upload",
    )


async def read_body(request: Request) -> tuple[dict[str, Any], UploadedFile | None]:
    """
    JSON object body, or multipart form with an optional image file.

    Multipart forms may carry a JSON object in a "data" field for nested
    values; plain form fields are merged over it.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        body: dict[str, Any] = {}
        file = None
        if "data" in form:
            body.update(_parse_object(form["data"]))
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == IMAGE_FIELD:
                    file = await to_uploaded_file(value)
            elif key != "data":
                body[key] = value
        return body, file

    raw = await request.body()
    if not raw.strip():
        return {}, None
    return _parse_object(raw), None


def _parse_object(raw: str | bytes) -> dict[str, Any]:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InvalidBody(f"Request body is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise InvalidBody("Request body must be a JSON object.")
    return value


def route_of(request: Request) -> str:
    url = request.url
    return f"{url.path}?{url.query}" if url.query else url.path


async def to_inbound(
    request: Request,
    requester: Requester | None,
    with_body: bool = False,
) -> InboundRequest:
    body, file = await read_body(request) if with_body else ({}, None)
    return InboundRequest(
        requester=requester,
        params=dict(request.path_params),
        query=dict(request.query_params),
        body=body,
        file=file,
        route=route_of(request),
    )
