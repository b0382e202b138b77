"""
Shared pytest fixtures for the player roles test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary roles files (JSON) with a small, known role layout
- Loaders and registry handles pointed at those files
- FastAPI TestClient instances for the admin API

Fixtures are function scoped so every test gets its own files and handle.
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from player_roles.api.server import create_app
from player_roles.loader import RoleConfigLoader
from player_roles.registry import RegistryHandle
from player_roles.rules import PermissionResult

# ============================================================================
# ROLES FILE FIXTURES
# ============================================================================

SAMPLE_ROLES: dict = {
    "admin": {
        "level": 100,
        "commands": {".*": "allow"},
        "apply": {"command_blocks": True, "functions": True},
    },
    "moderator": {
        "level": 50,
        "commands": {
            "kick": "allow",
            "ban": "deny",
            "execute as": "allow",
            "execute": "deny",
        },
        "apply": {"functions": True},
    },
    "builder": {
        "level": 10,
        "commands": {"gamemode (creative|spectator)": "allow"},
        "apply": {"command_blocks": True},
    },
    "everyone": {
        "commands": {"help": "allow", "list": "allow"},
    },
}


@pytest.fixture(scope="function")
def write_roles(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a helper that writes a roles payload to a temporary file.

    Dict payloads are serialized as JSON; strings are written verbatim so
    tests can exercise YAML and malformed input.
    """

    def _write(payload: dict | str, name: str = "roles.json") -> Path:
        path = tmp_path / name
        text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(scope="function")
def roles_path(write_roles) -> Path:
    """Temporary roles file holding SAMPLE_ROLES."""
    return write_roles(SAMPLE_ROLES)


@pytest.fixture(scope="function")
def loader(roles_path: Path) -> RoleConfigLoader:
    """Loader for the sample roles file with an explicit DENY default."""
    return RoleConfigLoader(roles_path, default=PermissionResult.DENY)


@pytest.fixture(scope="function")
def handle(loader: RoleConfigLoader) -> RegistryHandle:
    """Registry handle with the sample roles already loaded."""
    registry_handle = RegistryHandle()
    errors = registry_handle.reload(loader.load)
    assert errors == []
    return registry_handle


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(handle: RegistryHandle, loader: RoleConfigLoader) -> TestClient:
    """FastAPI TestClient serving the sample roles."""
    app = create_app(handle, loader, load_on_startup=False)
    return TestClient(app)
