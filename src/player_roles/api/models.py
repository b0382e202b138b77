"""
Pydantic models for API requests and responses.

Models are organized into two categories:
1. Request models: Data sent FROM the client TO the server
2. Response models: Data sent FROM the server TO the client
"""

from pydantic import BaseModel

from player_roles.roles import Role

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class CommandTestRequest(BaseModel):
    """
    Request to test a command against a role.

    Attributes:
        command: Raw command string, possibly partially typed (e.g. "execute as")
    """

    command: str


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class RuleInfo(BaseModel):
    """One command override rule, in insertion order."""

    pattern: str
    result: str


class ApplyInfo(BaseModel):
    """Non-player execution contexts a role applies to."""

    command_blocks: bool
    functions: bool


class RoleInfo(BaseModel):
    """
    Role summary for administrators.

    Attributes:
        name: Role name
        level: Priority level (0 for everyone)
        apply: Command block / function applicability
        default_result: Decision used when no rule matches
        rules: Command overrides in insertion order
    """

    name: str
    level: int
    apply: ApplyInfo
    default_result: str
    rules: list[RuleInfo]

    @classmethod
    def from_role(cls, role: Role) -> "RoleInfo":
        rules = role.get_permission_rules()
        return cls(
            name=role.name,
            level=role.level,
            apply=ApplyInfo(
                command_blocks=role.apply.command_blocks,
                functions=role.apply.functions,
            ),
            default_result=rules.default.value,
            rules=[
                RuleInfo(pattern=pattern, result=result.value)
                for pattern, result in rules.describe()
            ],
        )


class RoleListResponse(BaseModel):
    """All roles, everyone first, then by level."""

    roles: list[RoleInfo]


class CommandTestResponse(BaseModel):
    """Outcome of testing a command against a role."""

    role: str
    command: str
    tokens: list[str]
    result: str


class RoleSetResponse(BaseModel):
    """
    Roles that apply to a non-player execution context.

    Attributes:
        context: "command_blocks" or "functions"
        roles: Role names in set order
        priority: Role names sorted by level, highest first
    """

    context: str
    roles: list[str]
    priority: list[str]


class ReloadResponse(BaseModel):
    """Result of reloading the roles file."""

    success: bool
    errors: list[str]
    role_count: int
