"""
Role registry and the swappable handle that owns it.

The registry is responsible for:
- Assigning levels to roles in configuration order
- Looking roles up by name, with the everyone role always present
- Deriving the command block and function role sets lazily

A registry is never mutated after construction. Reloading configuration builds
a brand new registry and swaps it into the :class:`RegistryHandle`, so readers
always see either the old or the new registry, never a mix.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from player_roles.errors import DuplicateRoleError, RoleConfigError
from player_roles.roles import EVERYONE, Role, RoleApplyConfig, RoleDescriptor, ServerRoleSet
from player_roles.rules import PermissionResult

logger = logging.getLogger(__name__)


class RoleRegistry:
    """
    All configured roles plus the everyone baseline.

    The two derived role sets are memoized on first access. Concurrent first
    access may compute the same set more than once; the computation is a pure
    filter so either result is equivalent and no lock is taken.
    """

    __slots__ = ("_roles", "_everyone", "_command_block_roles", "_function_roles")

    def __init__(self, roles: Iterable[Role] = (), everyone: Role | None = None) -> None:
        role_map: dict[str, Role] = {}
        for role in roles:
            if role.name in role_map:
                raise DuplicateRoleError(role.name)
            role_map[role.name] = role

        self._roles = role_map
        self._everyone = everyone if everyone is not None else Role.empty(EVERYONE)
        self._command_block_roles: ServerRoleSet | None = None
        self._function_roles: ServerRoleSet | None = None

    @classmethod
    def empty(cls) -> RoleRegistry:
        """Registry in place before any configuration has been loaded."""
        return cls()

    @classmethod
    def from_descriptors(
        cls,
        descriptors: Iterable[RoleDescriptor],
        everyone: RoleDescriptor | None = None,
        *,
        default: PermissionResult = PermissionResult.DENY,
    ) -> RoleRegistry:
        """
        Build a registry from parsed role descriptors.

        Non-everyone roles get levels 1, 2, ... in descriptor order. The
        everyone role gets level 0 and falls back to an empty role when no
        descriptor for it exists.

        Raises:
            DuplicateRoleError: If two descriptors share a name.
            re.error: If a command pattern is not a valid regex.
        """
        roles: list[Role] = []
        level = 1
        for descriptor in descriptors:
            if descriptor.name == EVERYONE:
                if everyone is not None:
                    raise DuplicateRoleError(EVERYONE)
                everyone = descriptor
                continue
            roles.append(descriptor.create(level, default))
            level += 1

        if everyone is not None:
            everyone_role = everyone.create(0, default)
        else:
            everyone_role = Role.empty(EVERYONE, default)

        return cls(roles, everyone_role)

    def _build_roles(self, apply: Callable[[RoleApplyConfig], bool]) -> ServerRoleSet:
        return ServerRoleSet(role for role in self._roles.values() if apply(role.apply))

    def get(self, name: str) -> Role | None:
        """Return the role with the given name, or None if it is not configured."""
        if name == EVERYONE:
            return self._everyone
        return self._roles.get(name)

    def everyone(self) -> Role:
        return self._everyone

    def get_command_block_roles(self) -> ServerRoleSet:
        roles = self._command_block_roles
        if roles is None:
            self._command_block_roles = roles = self._build_roles(lambda apply: apply.command_blocks)
        return roles

    def get_function_roles(self) -> ServerRoleSet:
        roles = self._function_roles
        if roles is None:
            self._function_roles = roles = self._build_roles(lambda apply: apply.functions)
        return roles

    def stream(self) -> Iterator[Role]:
        """Iterate configured roles (the everyone role is not included)."""
        return iter(self._roles.values())

    def names(self) -> list[str]:
        return list(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, name: object) -> bool:
        return name == EVERYONE or name in self._roles

    def __repr__(self) -> str:
        return f"RoleRegistry(roles={self.names()!r})"


class RegistryHandle:
    """
    Owned reference to the current :class:`RoleRegistry`.

    Replacing the registry is a single attribute assignment, so readers on
    other threads observe either the previous registry or the new one.
    """

    def __init__(self, registry: RoleRegistry | None = None) -> None:
        self._registry = registry if registry is not None else RoleRegistry.empty()

    @property
    def current(self) -> RoleRegistry:
        return self._registry

    def replace(self, registry: RoleRegistry) -> RoleRegistry:
        """Swap in a new registry and return the previous one."""
        previous = self._registry
        self._registry = registry
        return previous

    def reload(self, load: Callable[[], RoleRegistry]) -> list[str]:
        """
        Load a new registry and swap it in.

        On failure the previous registry stays in place.

        Args:
            load: Callable producing a fully-built registry, typically
                :meth:`RoleConfigLoader.load`.

        Returns:
            Error messages; empty when the reload succeeded.
        """
        try:
            registry = load()
        except RoleConfigError as e:
            logger.warning("Failed to load roles configuration: %s", e)
            return list(e.errors)

        self.replace(registry)
        logger.info("Loaded %d roles (plus %s)", len(registry), EVERYONE)
        return []
