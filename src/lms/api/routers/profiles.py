"""
Profile routes.

    GET /api/v1/profiles/{username}   privacy-projected user profile
"""

from fastapi import APIRouter, Depends, Request

from ...models.core import Requester
from ..deps import get_requester
from ..dispatch import ProfileController
from .resources import API_PREFIX, run


def build_profile_router(controller: ProfileController) -> APIRouter:
    router = APIRouter(prefix=f"{API_PREFIX}/profiles", tags=["profiles"])

    @router.get("/{username}")
    async def get_profile(
        username: str, request: Request, requester: Requester | None = Depends(get_requester)
    ):
        return await run(request, requester, controller.get_profile)

    return router
