"""
LMS - Library management REST API.

Generic resource services (list, fetch, create, update, delete with blob
cleanup and an append-only audit trail) shared by every catalogue resource,
plus privacy-aware projection of user profiles.

Usage:
    from lms import create_app

    app = create_app()
"""

__version__ = "0.1.0"


def create_app(*args, **kwargs):
    """Create the FastAPI application (lazy import keeps the package light)."""
    from .api.main import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = ["create_app", "__version__"]
