"""Command permission overrides: tokenised commands and pattern rules.

A role's command overrides are an ordered list of rules. Each rule pairs a
sequence of per-token regular expressions with a :class:`PermissionResult`.
When a command is tested, every rule is classified against the command's
tokens:

    FULL       The rule's pattern is no longer than the command and every
               pattern token matches the command token at the same index.
               Specificity is the pattern length.
    AMBIGUOUS  The rule's pattern is longer than the (non-empty) command and
               every command token matches the leading pattern tokens. The
               user may still be typing towards the longer command.
    NONE       Some compared token failed to match.

Resolution:
    1. The longest FULL match decides the base result; on equal length the
       rule added last wins. With no FULL match the configured default applies.
    2. Any AMBIGUOUS match that allows forces ALLOW, so suggestions for a
       permitted continuation are never hidden by a shorter deny rule.
    3. Otherwise the base result stands.

Example:
    rules = (
        CommandPermissionRules.builder()
        .add_command("execute as", PermissionResult.ALLOW)
        .add_command("execute", PermissionResult.DENY)
        .build()
    )
    rules.test(MatchableCommand.parse("execute at"))  # DENY
    rules.test(MatchableCommand.parse("execute"))     # ALLOW (could become "execute as")

Rule sets are immutable once built and ``test`` is a pure function, so a single
instance can be shared by any number of threads.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

# ============================================================================
# PRIMITIVES
# ============================================================================


class PermissionResult(Enum):
    """Outcome of testing a command against a rule set."""

    ALLOW = "allow"
    DENY = "deny"

    @property
    def is_allowed(self) -> bool:
        return self is PermissionResult.ALLOW

    @classmethod
    def parse(cls, value: str | bool) -> PermissionResult:
        """Parse a configuration value (``"allow"``/``"deny"``, or a boolean).

        Raises:
            ValueError: If the value is not a recognised spelling.
        """
        if isinstance(value, bool):
            return cls.ALLOW if value else cls.DENY

        normalized = str(value).strip().lower()
        if normalized in ("allow", "true"):
            return cls.ALLOW
        if normalized in ("deny", "false"):
            return cls.DENY
        raise ValueError(f"Unknown permission result: {value!r} (expected 'allow' or 'deny')")


@dataclass(frozen=True, slots=True)
class MatchableCommand:
    """A command string split into whitespace-separated tokens."""

    tokens: tuple[str, ...]

    @classmethod
    def parse(cls, command: str) -> MatchableCommand:
        """Tokenise a raw command. Never fails; ``""`` yields zero tokens."""
        return cls(tuple(command.split()))

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        return " ".join(self.tokens)


class _Match(Enum):
    NONE = 0
    FULL = 1
    AMBIGUOUS = 2


PatternLike = str | re.Pattern[str]


def _compile(pattern: PatternLike) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def split_command_pattern(command: str) -> tuple[str, ...]:
    """Split a configuration key like ``"execute as"`` into per-token regexes."""
    return tuple(command.split())


# ============================================================================
# RULE SET
# ============================================================================


@dataclass(frozen=True, slots=True)
class CommandRule:
    """One override: per-token patterns and the result they produce."""

    patterns: tuple[re.Pattern[str], ...]
    result: PermissionResult

    def __len__(self) -> int:
        return len(self.patterns)

    @property
    def pattern_string(self) -> str:
        return " ".join(pattern.pattern for pattern in self.patterns)

    def match(self, command: MatchableCommand) -> _Match:
        tokens = command.tokens
        if len(self.patterns) <= len(tokens):
            for pattern, token in zip(self.patterns, tokens):
                if pattern.fullmatch(token) is None:
                    return _Match.NONE
            return _Match.FULL

        # Empty commands only ever match empty patterns.
        if not tokens:
            return _Match.NONE

        for pattern, token in zip(self.patterns, tokens):
            if pattern.fullmatch(token) is None:
                return _Match.NONE
        return _Match.AMBIGUOUS


class CommandPermissionRules:
    """Immutable, ordered set of command override rules for one role."""

    __slots__ = ("_rules", "_default")

    def __init__(
        self,
        rules: Iterable[CommandRule] = (),
        *,
        default: PermissionResult = PermissionResult.DENY,
    ) -> None:
        self._rules: tuple[CommandRule, ...] = tuple(rules)
        self._default = default

    @staticmethod
    def builder() -> CommandPermissionRulesBuilder:
        return CommandPermissionRulesBuilder()

    @classmethod
    def empty(cls, default: PermissionResult = PermissionResult.DENY) -> CommandPermissionRules:
        return cls((), default=default)

    @property
    def default(self) -> PermissionResult:
        return self._default

    @property
    def rules(self) -> tuple[CommandRule, ...]:
        return self._rules

    def test(self, command: MatchableCommand) -> PermissionResult:
        """Decide whether ``command`` is allowed by these overrides."""
        base: PermissionResult | None = None
        base_specificity = -1
        allowed_continuation = False

        for rule in self._rules:
            match = rule.match(command)
            if match is _Match.FULL:
                # >= so that the later of two equally specific rules wins
                if len(rule) >= base_specificity:
                    base = rule.result
                    base_specificity = len(rule)
            elif match is _Match.AMBIGUOUS and rule.result is PermissionResult.ALLOW:
                allowed_continuation = True

        if allowed_continuation:
            return PermissionResult.ALLOW
        if base is None:
            return self._default
        return base

    def describe(self) -> list[tuple[str, PermissionResult]]:
        """Return ``(pattern string, result)`` pairs in insertion order."""
        return [(rule.pattern_string, rule.result) for rule in self._rules]

    def __iter__(self) -> Iterator[CommandRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"CommandPermissionRules(rules={len(self._rules)}, default={self._default.value})"


class CommandPermissionRulesBuilder:
    """Append-only builder for :class:`CommandPermissionRules`."""

    def __init__(self) -> None:
        self._rules: list[CommandRule] = []

    def add(
        self, patterns: Sequence[PatternLike], result: PermissionResult
    ) -> CommandPermissionRulesBuilder:
        """Append a rule.

        Raises:
            re.error: If any pattern is not a valid regular expression.
        """
        compiled = tuple(_compile(pattern) for pattern in patterns)
        self._rules.append(CommandRule(compiled, result))
        return self

    def add_command(self, command: str, result: PermissionResult) -> CommandPermissionRulesBuilder:
        """Append a rule written as a whitespace-separated pattern string."""
        return self.add(split_command_pattern(command), result)

    def build(self, default: PermissionResult = PermissionResult.DENY) -> CommandPermissionRules:
        return CommandPermissionRules(self._rules, default=default)
