"""
LMS API Server - FastAPI application over the generic resource services.

Design Pattern:
1. Build the ServiceContainer once (repositories and services, from settings)
2. Connect storage in the lifespan (Postgres pool and tables when enabled)
3. Add middleware (logging, CORS)
4. Register one router per catalogue resource plus the profile router

Endpoints:
- /                              : API information
- /health                        : Health check
- /api/v1/{resource}             : Resource CRUD (pronouns, faqs, subjects,
                                   translators, writers, publications,
                                   site-content, admins, users, activity-logs)
- /api/v1/users/me               : Requester's own user record
- /api/v1/profiles/{username}    : Privacy-projected user profile
- /docs                          : OpenAPI documentation

Headers -> Requester mapping:
- X-User-Id    -> requester id (absent = anonymous)
- X-User-Role  -> "admin" grants administrative access
- X-User-Name  -> display name

Running:
    # Development (auto-reload)
    lms serve --reload

    # Production
    uvicorn lms.api.main:create_app --factory --host 0.0.0.0 --port 8000
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from .. import __version__
from ..services import ServiceContainer
from ..settings import settings
from .dispatch import ProfileController
from .routers import build_profile_router, resource_routers


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log all incoming HTTP requests and responses.

    Design Pattern:
    - Logs request method, path, client and requester header
    - Logs response status and duration
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client else "unknown"
        logger.info(
            f"→ REQUEST: {request.method} {request.url.path} | "
            f"Client: {client_host} | "
            f"User: {request.headers.get('x-user-id', 'anonymous')}"
        )

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"← RESPONSE: {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {duration_ms:.2f}ms"
        )

        return response


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Prebuilt services (defaults to ServiceContainer.from_settings())

    Returns:
        Configured FastAPI application
    """
    container = container or ServiceContainer.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting LMS API ({settings.environment})")
        await container.startup()

        yield

        await container.shutdown()
        logger.info("Shutting down LMS API")

    app = FastAPI(
        title="LMS API",
        description="Library management REST API",
        version=__version__,
        lifespan=lifespan,
        root_path=settings.root_path if settings.root_path else "",
    )
    app.state.container = container

    app.add_middleware(RequestLoggingMiddleware)

    # CORS added last so it runs first
    origins = settings.api.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """API information endpoint."""
        return {"name": "LMS API", "version": __version__, "docs": "/docs"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    for router in resource_routers(container):
        app.include_router(router)
    app.include_router(build_profile_router(ProfileController(container.profiles)))

    return app


# Create application instance
app = create_app()
