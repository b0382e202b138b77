"""
Role definitions.

A role is a named, levelled bundle of command overrides. Roles are flat: there
is no inheritance between them, and each one holds its own fully-resolved
:class:`~player_roles.rules.CommandPermissionRules`.

Role Hierarchy:
    everyone (level 0) → first configured role (level 1) → ... → last (level N)

Levels are assigned by the registry when configuration is loaded. A higher
level means a higher priority when more than one role applies.

Non-player execution contexts (command blocks and function scripts) only see
roles whose ``apply`` block opts in to that context; see :class:`ServerRoleSet`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from player_roles.rules import (
    CommandPermissionRules,
    MatchableCommand,
    PermissionResult,
)

#: Name of the implicit baseline role that applies to every player.
EVERYONE = "everyone"


# ============================================================================
# ROLE
# ============================================================================


@dataclass(frozen=True, slots=True)
class RoleApplyConfig:
    """Whether a role's overrides apply to non-player execution contexts.

    Attributes:
        command_blocks: Role is considered for command block execution.
        functions: Role is considered for function script execution.
    """

    command_blocks: bool = False
    functions: bool = False


@dataclass(frozen=True, slots=True)
class Role:
    """
    A configured role.

    Attributes:
        name: Unique role name within a registry.
        level: Priority level (0 for everyone, 1..N in configuration order).
        permission_rules: Command overrides owned by this role.
        apply: Non-player execution contexts this role applies to.
    """

    name: str
    level: int
    permission_rules: CommandPermissionRules = field(default_factory=CommandPermissionRules.empty)
    apply: RoleApplyConfig = field(default_factory=RoleApplyConfig)

    @classmethod
    def empty(cls, name: str, default: PermissionResult = PermissionResult.DENY) -> Role:
        """Build a level-0 role with no overrides."""
        return cls(name=name, level=0, permission_rules=CommandPermissionRules.empty(default))

    def get_name(self) -> str:
        return self.name

    def get_level(self) -> int:
        return self.level

    def get_permission_rules(self) -> CommandPermissionRules:
        return self.permission_rules

    def get_apply(self) -> RoleApplyConfig:
        return self.apply

    def test(self, command: MatchableCommand | str) -> PermissionResult:
        """Test a command against this role's overrides."""
        if isinstance(command, str):
            command = MatchableCommand.parse(command)
        return self.permission_rules.test(command)

    @staticmethod
    def sort_key(role: Role) -> int:
        return role.level


# ============================================================================
# DESCRIPTORS
# ============================================================================


@dataclass(frozen=True, slots=True)
class RoleDescriptor:
    """
    Parsed, not-yet-built role configuration.

    Descriptors are produced by the configuration loader and turned into
    :class:`Role` objects by the registry, which owns level assignment.

    Attributes:
        name: Role name.
        commands: Ordered ``(patterns, result)`` overrides, one regex per token.
        apply: Non-player execution contexts the role applies to.
        level: Explicit priority from the configuration file, if any. Only used
            to order descriptors; the registry assigns the final level.
    """

    name: str
    commands: tuple[tuple[tuple[str, ...], PermissionResult], ...] = ()
    apply: RoleApplyConfig = field(default_factory=RoleApplyConfig)
    level: int | None = None

    def create(self, level: int, default: PermissionResult = PermissionResult.DENY) -> Role:
        """
        Build the role at the given level.

        Raises:
            re.error: If one of the command patterns is not a valid regex.
        """
        builder = CommandPermissionRules.builder()
        for patterns, result in self.commands:
            builder.add(patterns, result)
        return Role(
            name=self.name,
            level=level,
            permission_rules=builder.build(default),
            apply=self.apply,
        )


# ============================================================================
# SERVER ROLE SETS
# ============================================================================


class ServerRoleSet:
    """
    Roles that apply to a non-player execution context.

    The set is additive only and keeps insertion order. Callers that need
    priority order use :meth:`by_priority`.
    """

    def __init__(self, roles: Iterable[Role] = ()) -> None:
        self._roles: list[Role] = []
        for role in roles:
            self.add(role)

    def add(self, role: Role) -> None:
        self._roles.append(role)

    def by_priority(self) -> list[Role]:
        """Return the roles sorted by level, highest first."""
        return sorted(self._roles, key=Role.sort_key, reverse=True)

    def names(self) -> list[str]:
        return [role.name for role in self._roles]

    def __iter__(self) -> Iterator[Role]:
        return iter(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, item: object) -> bool:
        """Membership by role name or by :class:`Role`."""
        if isinstance(item, Role):
            return item in self._roles
        return any(role.name == item for role in self._roles)

    def __repr__(self) -> str:
        return f"ServerRoleSet({self.names()!r})"
