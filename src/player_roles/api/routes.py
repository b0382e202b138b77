"""API route definitions.

All routes read from the registry currently held by the handle; a reload
swaps the registry wholesale, so one request never sees a partial update.
"""

import logging
from secrets import compare_digest

from fastapi import FastAPI, Header, HTTPException

from player_roles import __version__
from player_roles.api.models import (
    CommandTestRequest,
    CommandTestResponse,
    ReloadResponse,
    RoleInfo,
    RoleListResponse,
    RoleSetResponse,
)
from player_roles.config import config
from player_roles.loader import RoleConfigLoader
from player_roles.registry import RegistryHandle
from player_roles.roles import Role, ServerRoleSet
from player_roles.rules import MatchableCommand

logger = logging.getLogger(__name__)


def _role_or_404(handle: RegistryHandle, name: str) -> Role:
    role = handle.current.get(name)
    if role is None:
        raise HTTPException(status_code=404, detail=f"Unknown role: {name}")
    return role


def require_admin_token(token: str | None) -> None:
    """
    Guard state-changing admin routes.

    Raises:
        HTTPException(403): In production, when no admin token is configured
            or the supplied token does not match.
    """
    if not config.is_production:
        return

    expected = config.security.admin_token
    if not expected:
        raise HTTPException(
            status_code=403, detail="Admin routes are disabled: no admin token configured"
        )
    if token is None or not compare_digest(token, expected):
        raise HTTPException(status_code=403, detail="Invalid admin token")


def _role_set_response(context: str, roles: ServerRoleSet) -> RoleSetResponse:
    return RoleSetResponse(
        context=context,
        roles=roles.names(),
        priority=[role.name for role in roles.by_priority()],
    )


def register_routes(app: FastAPI, handle: RegistryHandle, loader: RoleConfigLoader) -> None:
    """Register all API routes with the FastAPI app."""

    @app.get("/")
    async def root():
        """Root endpoint showing API identity and current version."""
        return {"message": "Player Roles API", "version": __version__}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "roles": len(handle.current)}

    @app.get("/roles", response_model=RoleListResponse)
    async def list_roles():
        """List every role, everyone first, then configured roles by level."""
        registry = handle.current
        roles = [registry.everyone(), *sorted(registry.stream(), key=Role.sort_key)]
        return RoleListResponse(roles=[RoleInfo.from_role(role) for role in roles])

    @app.get("/roles/sets/command_blocks", response_model=RoleSetResponse)
    async def command_block_roles():
        """Roles applied to command block execution."""
        return _role_set_response("command_blocks", handle.current.get_command_block_roles())

    @app.get("/roles/sets/functions", response_model=RoleSetResponse)
    async def function_roles():
        """Roles applied to function script execution."""
        return _role_set_response("functions", handle.current.get_function_roles())

    @app.get("/roles/{name}", response_model=RoleInfo)
    async def get_role(name: str):
        """Return a single role."""
        return RoleInfo.from_role(_role_or_404(handle, name))

    @app.post("/roles/{name}/test", response_model=CommandTestResponse)
    async def test_command(name: str, request: CommandTestRequest):
        """Test a (possibly partial) command against a role's overrides."""
        role = _role_or_404(handle, name)
        command = MatchableCommand.parse(request.command)
        result = role.get_permission_rules().test(command)
        return CommandTestResponse(
            role=role.name,
            command=str(command),
            tokens=list(command.tokens),
            result=result.value,
        )

    @app.post("/admin/reload", response_model=ReloadResponse)
    async def reload_roles(x_admin_token: str | None = Header(default=None)):
        """
        Reload the roles file; the previous roles stay active on failure.

        Open outside production. In production the request must carry an
        ``X-Admin-Token`` header matching ``security.admin_token``, and the
        route is refused entirely when no token is configured.
        """
        require_admin_token(x_admin_token)
        errors = handle.reload(loader.load)
        if errors:
            logger.warning("Roles reload rejected with %d error(s)", len(errors))
        return ReloadResponse(success=not errors, errors=errors, role_count=len(handle.current))
