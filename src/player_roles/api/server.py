"""
FastAPI admin server for player roles.

This module builds the read-only inspection API used by administrators to list
roles, look at the role sets derived for command blocks and functions, and try
commands against a role. It sets up:
- The registry handle that owns the current roles
- The loader used for the initial load and for ``/admin/reload``
- All API route endpoints
"""

import logging

from fastapi import FastAPI

from player_roles import __version__
from player_roles.api.routes import register_routes
from player_roles.config import config
from player_roles.loader import RoleConfigLoader, setup_roles
from player_roles.registry import RegistryHandle

logger = logging.getLogger(__name__)


def create_app(
    handle: RegistryHandle | None = None,
    loader: RoleConfigLoader | None = None,
    *,
    load_on_startup: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        handle: Registry handle to serve. A new empty handle is created if None.
        loader: Loader used for reloads. Defaults to the configured roles file.
        load_on_startup: Bootstrap and load the roles file before serving.

    Returns:
        Configured FastAPI app. The handle is available as ``app.state.roles``.
    """
    handle = handle if handle is not None else RegistryHandle()
    loader = loader if loader is not None else RoleConfigLoader()

    docs_url = "/docs" if config.docs_should_be_enabled else None
    app = FastAPI(title="Player Roles", version=__version__, docs_url=docs_url, redoc_url=None)
    app.state.roles = handle

    if load_on_startup:
        errors = setup_roles(handle, loader.path, default=loader.default)
        for error in errors:
            logger.warning("Roles configuration: %s", error)

    register_routes(app, handle, loader)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """
    Start the admin API with uvicorn.

    Args:
        host: Interface to bind. Defaults to ``config.server.host``.
        port: Port to bind. Defaults to ``config.server.port``.
    """
    import uvicorn

    from player_roles.logging_config import configure_logging

    configure_logging(config.logging.level, config.logging.format)

    app = create_app()
    uvicorn.run(app, host=host or config.server.host, port=port or config.server.port)
