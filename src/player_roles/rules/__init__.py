"""Command permission override rules."""

from .command import (
    CommandPermissionRules,
    CommandPermissionRulesBuilder,
    CommandRule,
    MatchableCommand,
    PermissionResult,
    split_command_pattern,
)

__all__ = [
    "CommandPermissionRules",
    "CommandPermissionRulesBuilder",
    "CommandRule",
    "MatchableCommand",
    "PermissionResult",
    "split_command_pattern",
]
