"""
Command-line interface for Player Roles.

Provides CLI commands for role management:
- init: Write the default roles file if none exists
- check: Validate a roles file
- list: Show configured roles with level and apply flags
- test: Test a command against a role
- run: Start the admin API server

Usage:
    player-roles init [--config PATH]
    player-roles check [--config PATH]
    player-roles list [--config PATH]
    player-roles test ROLE COMMAND... [--config PATH]
    player-roles run [--port PORT] [--host HOST]

Environment Variables:
    ROLES_CONFIG_PATH: Roles file (default: config/roles.json)
    ROLES_DEFAULT_RESULT: Decision when no rule matches (default: deny)
    ROLES_HOST: Host to bind the API server (default: 0.0.0.0)
    ROLES_PORT: Port for the API server (default: 8000)
"""

import argparse
import sys
from pathlib import Path

from player_roles.config import config
from player_roles.errors import RoleConfigError
from player_roles.loader import RoleConfigLoader, ensure_config
from player_roles.logging_config import configure_logging
from player_roles.registry import RoleRegistry
from player_roles.roles import Role
from player_roles.rules import MatchableCommand


def _loader(args: argparse.Namespace) -> RoleConfigLoader:
    path = getattr(args, "config", None)
    return RoleConfigLoader(Path(path) if path else None)


def _load(args: argparse.Namespace) -> RoleRegistry | None:
    """Load the registry, printing errors to stderr on failure."""
    loader = _loader(args)
    try:
        return loader.load()
    except RoleConfigError as e:
        print(f"Error: invalid roles configuration ({loader.path}):", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        return None


def _format_apply(role: Role) -> str:
    targets = []
    if role.apply.command_blocks:
        targets.append("command_blocks")
    if role.apply.functions:
        targets.append("functions")
    return ", ".join(targets) or "-"


def cmd_init(args: argparse.Namespace) -> int:
    """
    Create the roles file from the packaged default if it does not exist.

    Returns:
        0 on success, 1 on error
    """
    path = _loader(args).path
    if path.exists():
        print(f"Roles file already exists: {path}")
        return 0
    if not ensure_config(path):
        print(f"Error: could not create roles file at {path}", file=sys.stderr)
        return 1
    print(f"Created roles file: {path}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """
    Validate the roles file.

    Returns:
        0 if the file is valid, 1 otherwise
    """
    registry = _load(args)
    if registry is None:
        return 1
    print(f"OK: {len(registry)} roles (plus everyone)")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Print every role with its level, apply targets and rule count."""
    registry = _load(args)
    if registry is None:
        return 1

    roles = [registry.everyone(), *sorted(registry.stream(), key=Role.sort_key)]
    print(f"{'LEVEL':>5}  {'ROLE':<20} {'RULES':>5}  APPLY")
    for role in roles:
        print(
            f"{role.level:>5}  {role.name:<20} {len(role.permission_rules):>5}  "
            f"{_format_apply(role)}"
        )
    return 0


def cmd_test(args: argparse.Namespace) -> int:
    """
    Test a command against a role.

    Returns:
        0 when the role exists (whatever the result), 1 on configuration
        errors, 2 for an unknown role
    """
    registry = _load(args)
    if registry is None:
        return 1

    role = registry.get(args.role)
    if role is None:
        print(f"Error: unknown role '{args.role}'", file=sys.stderr)
        return 2

    command = MatchableCommand.parse(" ".join(args.command))
    result = role.get_permission_rules().test(command)
    print(result.name)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the admin API server.

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on startup error
    """
    from player_roles.api.server import start_server

    if getattr(args, "config", None):
        config.roles.path = args.config

    try:
        start_server(host=getattr(args, "host", None), port=getattr(args, "port", None))
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0
    except OSError as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Roles file (default: config/roles.json, or ROLES_CONFIG_PATH env var)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="player-roles",
        description="Player Roles - tiered command permission overrides",
    )

    subparsers = parser.add_subparsers(dest="command_name", help="Available commands")

    init_parser = subparsers.add_parser(
        "init",
        help="Create the default roles file",
        description="Write the packaged default roles file if none exists yet.",
    )
    _add_config_argument(init_parser)
    init_parser.set_defaults(func=cmd_init)

    check_parser = subparsers.add_parser("check", help="Validate the roles file")
    _add_config_argument(check_parser)
    check_parser.set_defaults(func=cmd_check)

    list_parser = subparsers.add_parser("list", help="List configured roles")
    _add_config_argument(list_parser)
    list_parser.set_defaults(func=cmd_list)

    test_parser = subparsers.add_parser(
        "test",
        help="Test a command against a role",
        description="Print ALLOW or DENY for COMMAND under ROLE's overrides.",
    )
    test_parser.add_argument("role", help="Role name")
    test_parser.add_argument("command", nargs="*", help="Command tokens (may be partial)")
    _add_config_argument(test_parser)
    test_parser.set_defaults(func=cmd_test)

    run_parser = subparsers.add_parser("run", help="Run the admin API server")
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="API server port (default: 8000, or ROLES_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind the server to (default: 0.0.0.0, or ROLES_HOST env var)",
    )
    _add_config_argument(run_parser)
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command_name is None:
        parser.print_help()
        return 0

    configure_logging(config.logging.level, config.logging.format)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
