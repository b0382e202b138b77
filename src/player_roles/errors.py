"""Typed exceptions for role configuration.

Design intent:
    - Domain outcomes like "role not found" are represented by ``None`` where
      the lookup contracts already use that value.
    - Construction failures (malformed configuration) raise typed exceptions
      so the loading layer can report them and keep the previous registry.
"""

from __future__ import annotations

from pathlib import Path


class RolesError(RuntimeError):
    """Base exception for player-roles failures."""


class RoleConfigError(RolesError):
    """Roles configuration could not be turned into a registry.

    Args:
        errors: Human-readable messages, one per problem found.
        path: Configuration file the errors refer to, when known.
    """

    def __init__(self, errors: list[str] | str, *, path: Path | None = None) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors: list[str] = list(errors)
        self.path = path

        message = "; ".join(self.errors) or "invalid roles configuration"
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class DuplicateRoleError(RoleConfigError):
    """Two role descriptors share the same name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Duplicate role name: {name}")
        self.name = name
