"""
lms serve: run the library API under uvicorn.

The application is built by lms.api.main:create_app inside each server
process, so reloaders and worker processes get their own service container
(database pool, blob store client).

    lms serve --reload          # development, single process
    lms serve --workers 4       # production
"""

from typing import Any

import click
from loguru import logger

APP_FACTORY = "lms.api.main:create_app"


def server_options(
    host: str | None = None,
    port: int | None = None,
    reload: bool | None = None,
    workers: int | None = None,
    log_level: str | None = None,
) -> dict[str, Any]:
    """Keyword arguments for uvicorn.run, command line over settings."""
    from ...settings import settings

    options: dict[str, Any] = {
        "app": APP_FACTORY,
        "factory": True,
        "host": host or settings.api.host,
        "port": port or settings.api.port,
        "log_level": log_level or settings.api.log_level,
    }

    # uvicorn ignores workers when reloading
    if reload is None and workers is None:
        reload = settings.api.reload
    if reload:
        options["reload"] = True
    else:
        options["workers"] = workers or settings.api.workers
    return options


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default: API__HOST)")
@click.option("--port", default=None, type=int, help="Listen port (default: API__PORT)")
@click.option("--reload/--no-reload", default=None, help="Restart on code changes")
@click.option("--workers", default=None, type=int, help="Worker processes")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
)
def serve_command(host, port, reload, workers, log_level):
    """Start the LMS API server."""
    import uvicorn

    options = server_options(host, port, reload, workers, log_level)
    mode = "reload" if options.get("reload") else f"{options['workers']} worker(s)"
    logger.info(f"Serving {APP_FACTORY} on http://{options['host']}:{options['port']} ({mode})")
    uvicorn.run(**options)


def register_command(cli_group):
    """Register the serve command."""
    cli_group.add_command(serve_command)
