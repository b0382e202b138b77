"""
Unit tests for command override matching (player_roles/rules/command.py).

Tests cover:
- Command tokenisation
- Permission result parsing
- Full-match specificity and insertion-order tie-break
- Prefix (ambiguous) matches that keep permitted continuations visible
- Default decision when nothing matches
- Builder validation
"""

import re

import pytest

from player_roles.rules import (
    CommandPermissionRules,
    MatchableCommand,
    PermissionResult,
)

ALLOW = PermissionResult.ALLOW
DENY = PermissionResult.DENY


def command(raw: str) -> MatchableCommand:
    return MatchableCommand.parse(raw)


# ============================================================================
# MATCHABLE COMMAND TESTS
# ============================================================================


@pytest.mark.unit
def test_parse_splits_on_whitespace():
    """Tokens are split on any run of whitespace."""
    assert command("execute  as\t@p   run say").tokens == ("execute", "as", "@p", "run", "say")


@pytest.mark.unit
def test_parse_ignores_leading_and_trailing_whitespace():
    """Surrounding whitespace produces no empty tokens."""
    assert command("   kick Steve  ").tokens == ("kick", "Steve")


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
def test_parse_empty_command(raw):
    """Empty and blank strings parse to zero tokens."""
    parsed = command(raw)
    assert parsed.tokens == ()
    assert len(parsed) == 0


@pytest.mark.unit
def test_parsed_commands_compare_by_tokens():
    """Commands are value types."""
    assert command("kick  Steve") == command("kick Steve")
    assert str(command(" kick   Steve ")) == "kick Steve"


# ============================================================================
# PERMISSION RESULT TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        ("allow", ALLOW),
        ("ALLOW", ALLOW),
        (" deny ", DENY),
        ("true", ALLOW),
        ("false", DENY),
        (True, ALLOW),
        (False, DENY),
    ],
)
def test_permission_result_parse(value, expected):
    assert PermissionResult.parse(value) is expected


@pytest.mark.unit
def test_permission_result_parse_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown permission result"):
        PermissionResult.parse("pass")


@pytest.mark.unit
def test_permission_result_is_allowed():
    assert ALLOW.is_allowed is True
    assert DENY.is_allowed is False


# ============================================================================
# SCENARIO TESTS
# ============================================================================


@pytest.mark.unit
def test_allow_execute_as_deny_execute():
    """Allowing a subcommand keeps the bare prefix visible."""
    rules = (
        CommandPermissionRules.builder()
        .add_command("execute as", ALLOW)
        .add_command("execute", DENY)
        .build()
    )

    assert rules.test(command("execute as")) is ALLOW
    assert rules.test(command("execute at")) is DENY
    assert rules.test(command("execute")) is ALLOW


@pytest.mark.unit
def test_allow_execute_deny_execute_as():
    """Denying a subcommand does not hide the allowed prefix."""
    rules = (
        CommandPermissionRules.builder()
        .add_command("execute as", DENY)
        .add_command("execute", ALLOW)
        .build()
    )

    assert rules.test(command("execute as")) is DENY
    assert rules.test(command("execute at")) is ALLOW
    assert rules.test(command("execute")) is ALLOW


@pytest.mark.unit
@pytest.mark.parametrize("default", [ALLOW, DENY])
def test_empty_rules_use_default(default):
    """With no rules every command resolves to the configured default."""
    rules = CommandPermissionRules.builder().build(default)

    assert rules.test(command("anything at all")) is default
    assert rules.test(command("")) is default


@pytest.mark.unit
def test_default_is_deny_when_unspecified():
    assert CommandPermissionRules.builder().build().default is DENY
    assert CommandPermissionRules.empty().test(command("help")) is DENY


# ============================================================================
# SPECIFICITY AND TIE-BREAK TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize("longer_first", [True, False])
def test_longest_full_match_wins_regardless_of_order(longer_first):
    """The more specific rule decides, whichever was added first."""
    builder = CommandPermissionRules.builder()
    if longer_first:
        builder.add_command("gamemode creative", DENY).add_command("gamemode", ALLOW)
    else:
        builder.add_command("gamemode", ALLOW).add_command("gamemode creative", DENY)
    rules = builder.build()

    assert rules.test(command("gamemode creative Steve")) is DENY
    assert rules.test(command("gamemode survival")) is ALLOW


@pytest.mark.unit
def test_equal_specificity_last_added_wins():
    """Two rules of the same length: the later one decides."""
    rules = (
        CommandPermissionRules.builder()
        .add_command("tp .*", ALLOW)
        .add_command("tp @a", DENY)
        .build()
    )
    assert rules.test(command("tp @a")) is DENY
    assert rules.test(command("tp Steve")) is ALLOW

    reversed_rules = (
        CommandPermissionRules.builder()
        .add_command("tp @a", DENY)
        .add_command("tp .*", ALLOW)
        .build()
    )
    assert reversed_rules.test(command("tp @a")) is ALLOW


@pytest.mark.unit
def test_patterns_must_match_whole_token():
    """Patterns are anchored to the full token."""
    rules = CommandPermissionRules.builder().add_command("say", ALLOW).build()

    assert rules.test(command("say hello")) is ALLOW
    assert rules.test(command("sayhello")) is DENY
    assert rules.test(command("essay")) is DENY


@pytest.mark.unit
def test_regex_alternation_per_token():
    rules = (
        CommandPermissionRules.builder()
        .add_command("gamemode (creative|spectator)", ALLOW)
        .build()
    )

    assert rules.test(command("gamemode spectator")) is ALLOW
    assert rules.test(command("gamemode survival")) is DENY


@pytest.mark.unit
def test_empty_pattern_matches_every_command():
    """An empty pattern is a full match of specificity zero."""
    rules = (
        CommandPermissionRules.builder()
        .add([], ALLOW)
        .add_command("stop", DENY)
        .build()
    )

    assert rules.test(command("")) is ALLOW
    assert rules.test(command("help")) is ALLOW
    assert rules.test(command("stop")) is DENY


# ============================================================================
# PREFIX (AMBIGUOUS) MATCH TESTS
# ============================================================================


@pytest.mark.unit
def test_ambiguous_allow_overrides_shorter_deny():
    """A permitted longer command keeps its typed prefix allowed."""
    rules = (
        CommandPermissionRules.builder()
        .add_command("gamerule", DENY)
        .add_command("gamerule doDaylightCycle false", ALLOW)
        .build()
    )

    assert rules.test(command("gamerule")) is ALLOW
    assert rules.test(command("gamerule doDaylightCycle")) is ALLOW
    assert rules.test(command("gamerule keepInventory")) is DENY
    assert rules.test(command("gamerule doDaylightCycle true")) is DENY


@pytest.mark.unit
def test_ambiguous_allow_overrides_default():
    rules = CommandPermissionRules.builder().add_command("team add .*", ALLOW).build()

    assert rules.test(command("team")) is ALLOW
    assert rules.test(command("team add")) is ALLOW
    assert rules.test(command("team remove")) is DENY


@pytest.mark.unit
def test_ambiguous_deny_never_overrides_allow():
    """A longer deny rule cannot reduce access to a shorter allowed command."""
    rules = (
        CommandPermissionRules.builder()
        .add_command("weather", ALLOW)
        .add_command("weather thunder .*", DENY)
        .build()
    )

    assert rules.test(command("weather")) is ALLOW
    assert rules.test(command("weather thunder")) is ALLOW
    assert rules.test(command("weather thunder 600")) is DENY


@pytest.mark.unit
def test_ambiguous_match_requires_typed_tokens_to_match():
    rules = CommandPermissionRules.builder().add_command("execute as", ALLOW).build()

    assert rules.test(command("tp")) is DENY


@pytest.mark.unit
def test_empty_command_is_never_ambiguous():
    """An empty command only matches empty patterns."""
    rules = CommandPermissionRules.builder().add_command("help", ALLOW).build(DENY)

    assert rules.test(command("")) is DENY


# ============================================================================
# PURITY TESTS
# ============================================================================


@pytest.mark.unit
def test_test_is_idempotent():
    rules = (
        CommandPermissionRules.builder()
        .add_command("execute as", ALLOW)
        .add_command("execute", DENY)
        .build()
    )
    first = [rules.test(command(raw)) for raw in ("execute", "execute at", "execute as")]
    second = [rules.test(command(raw)) for raw in ("execute", "execute at", "execute as")]

    assert first == second


@pytest.mark.unit
def test_built_rules_are_not_affected_by_later_builder_use():
    builder = CommandPermissionRules.builder().add_command("help", ALLOW)
    rules = builder.build()
    builder.add_command("help", DENY)

    assert len(rules) == 1
    assert rules.test(command("help")) is ALLOW


@pytest.mark.unit
def test_describe_lists_rules_in_insertion_order():
    rules = (
        CommandPermissionRules.builder()
        .add_command("execute as", ALLOW)
        .add(["execute"], DENY)
        .build()
    )

    assert rules.describe() == [("execute as", ALLOW), ("execute", DENY)]


# ============================================================================
# BUILDER VALIDATION TESTS
# ============================================================================


@pytest.mark.unit
def test_malformed_pattern_fails_at_add():
    builder = CommandPermissionRules.builder()

    with pytest.raises(re.error):
        builder.add(["tp", "[unclosed"], ALLOW)


@pytest.mark.unit
def test_builder_accepts_compiled_patterns():
    rules = (
        CommandPermissionRules.builder()
        .add([re.compile("msg"), re.compile(r"\w+")], DENY)
        .build(ALLOW)
    )

    assert rules.test(command("msg Steve hi")) is DENY
    assert rules.test(command("me waves")) is ALLOW
