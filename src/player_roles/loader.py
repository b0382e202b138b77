"""Roles file loader and validator.

This module reads the roles file (JSON, or YAML by file suffix), validates every
role body, and produces a fully-built :class:`RoleRegistry`. All problems found
in a file are collected and raised together as one :class:`RoleConfigError`;
a registry is only returned when the whole file is valid.

File layout::

    {
      "admin": {
        "level": 10,
        "commands": {".*": "allow"},
        "apply": {"command_blocks": true, "functions": true}
      },
      "everyone": {
        "commands": {"help": "allow", "execute": "deny"}
      }
    }

``commands`` may also be nested as ``overrides.commands``. Each command key is a
whitespace-separated list of per-token regular expressions.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
from collections.abc import Callable, Hashable
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from player_roles.config import PROJECT_ROOT, config
from player_roles.errors import RoleConfigError
from player_roles.registry import RegistryHandle, RoleRegistry
from player_roles.roles import EVERYONE, RoleApplyConfig, RoleDescriptor
from player_roles.rules import PermissionResult, split_command_pattern

logger = logging.getLogger(__name__)

#: File suffixes parsed as YAML; everything else is parsed as JSON.
YAML_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})

#: Keys accepted inside an ``apply`` block, mapped to RoleApplyConfig fields.
APPLY_KEYS: dict[str, str] = {
    "command_blocks": "command_blocks",
    "command_block": "command_blocks",
    "functions": "functions",
}


class RoleConfigLoader:
    """Load and validate a roles file."""

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        default: PermissionResult | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._default = default

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else config.roles.absolute_path

    @property
    def default(self) -> PermissionResult:
        return self._default if self._default is not None else config.roles.default_result

    def load(self) -> RoleRegistry:
        """
        Read the roles file and build a registry.

        Raises:
            RoleConfigError: If the file cannot be read, is malformed, or
                contains any invalid role definition.
        """
        path = self.path
        payload, duplicates = self._read(path)
        descriptors, errors = parse_roles(payload)
        errors = duplicates + errors
        if errors:
            raise RoleConfigError(errors, path=path)

        try:
            return RoleRegistry.from_descriptors(descriptors, default=self.default)
        except RoleConfigError as e:
            raise RoleConfigError(e.errors, path=path) from e
        except re.error as e:
            raise RoleConfigError(f"Invalid command pattern: {e}", path=path) from e

    def _read(self, path: Path) -> tuple[Any, list[str]]:
        """Return the parsed payload and a message for every repeated key."""
        try:
            with path.open("r", encoding="utf-8") as handle:
                if path.suffix.lower() in YAML_SUFFIXES:
                    yaml_loader = UniqueKeySafeLoader(handle)
                    try:
                        return yaml_loader.get_single_data(), yaml_loader.duplicate_keys
                    finally:
                        yaml_loader.dispose()

                duplicates: list[str] = []
                payload = json.load(handle, object_pairs_hook=_unique_pairs_hook(duplicates))
                return payload, duplicates
        except OSError as e:
            raise RoleConfigError(f"Failed to read roles configuration: {e}", path=path) from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise RoleConfigError(
                f"Malformed syntax in roles configuration: {e}", path=path
            ) from e


# ============================================================================
# DUPLICATE KEY DETECTION
# ============================================================================


def _duplicate_key_message(key: Any) -> str:
    return f"Duplicate key '{key}': a role or command may only be defined once"


def _unique_pairs_hook(duplicates: list[str]) -> Callable[[list[tuple[str, Any]]], dict]:
    """Build a ``json.load`` pairs hook that records repeated keys."""

    def hook(pairs: list[tuple[str, Any]]) -> dict:
        result: dict[str, Any] = {}
        for key, value in pairs:
            if key in result:
                duplicates.append(_duplicate_key_message(key))
            result[key] = value
        return result

    return hook


class UniqueKeySafeLoader(yaml.SafeLoader):
    """``yaml.SafeLoader`` that records repeated mapping keys."""

    def __init__(self, stream: Any) -> None:
        super().__init__(stream)
        self.duplicate_keys: list[str] = []

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict:
        if isinstance(node, yaml.MappingNode):
            seen: set[Any] = set()
            for key_node, _value_node in node.value:
                # merge keys ("<<") may be overridden by explicit keys
                if key_node.tag == "tag:yaml.org,2002:merge":
                    continue
                key = self.construct_object(key_node, deep=deep)
                if not isinstance(key, Hashable):
                    # rejected by the base constructor below
                    continue
                if key in seen:
                    self.duplicate_keys.append(_duplicate_key_message(key))
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


# ============================================================================
# PARSING
# ============================================================================


def parse_roles(payload: Any) -> tuple[list[RoleDescriptor], list[str]]:
    """
    Parse a roles payload into ordered descriptors.

    Descriptors are ordered by ``(level, position in file)``, where a role with
    no explicit level uses its position as its level.

    Returns:
        Tuple of (descriptors, error_messages).
    """
    if payload is None:
        return [], []
    if not isinstance(payload, dict):
        return [], ["Roles configuration root must be a mapping of role name to role"]

    errors: list[str] = []
    ordered: list[tuple[int, int, RoleDescriptor]] = []

    for index, (name, body) in enumerate(payload.items()):
        descriptor = _parse_role(str(name), body, errors)
        if descriptor is None:
            continue
        level = descriptor.level if descriptor.level is not None else index
        ordered.append((level, index, descriptor))

    ordered.sort(key=lambda entry: (entry[0], entry[1]))
    return [descriptor for _level, _index, descriptor in ordered], errors


def _parse_role(name: str, body: Any, errors: list[str]) -> RoleDescriptor | None:
    if body is None:
        body = {}
    if not isinstance(body, dict):
        errors.append(f"Role '{name}' must be a mapping")
        return None

    error_count = len(errors)

    level = body.get("level")
    if level is not None and (isinstance(level, bool) or not isinstance(level, int)):
        errors.append(f"Role '{name}': level must be an integer")
        level = None

    commands = _parse_commands(name, _commands_block(body), errors)
    apply = _parse_apply(name, body.get("apply"), errors)

    if len(errors) > error_count:
        return None
    return RoleDescriptor(name=name, commands=commands, apply=apply, level=level)


def _commands_block(body: dict[str, Any]) -> Any:
    overrides = body.get("overrides")
    if isinstance(overrides, dict) and "commands" in overrides:
        return overrides["commands"]
    return body.get("commands")


def _parse_commands(
    name: str, block: Any, errors: list[str]
) -> tuple[tuple[tuple[str, ...], PermissionResult], ...]:
    if block is None:
        return ()
    if not isinstance(block, dict):
        errors.append(f"Role '{name}': commands must be a mapping of pattern to result")
        return ()

    commands = []
    for command, value in block.items():
        patterns = split_command_pattern(str(command))
        try:
            result = PermissionResult.parse(value)
        except ValueError as e:
            errors.append(f"Role '{name}' command '{command}': {e}")
            continue

        bad_pattern = False
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(f"Role '{name}' command '{command}': invalid pattern '{pattern}': {e}")
                bad_pattern = True
        if not bad_pattern:
            commands.append((patterns, result))

    return tuple(commands)


def _parse_apply(name: str, block: Any, errors: list[str]) -> RoleApplyConfig:
    if block is None:
        return RoleApplyConfig()
    if not isinstance(block, dict):
        errors.append(f"Role '{name}': apply must be a mapping")
        return RoleApplyConfig()

    values: dict[str, bool] = {}
    for key, value in block.items():
        field_name = APPLY_KEYS.get(str(key))
        if field_name is None:
            errors.append(f"Role '{name}': unknown apply target '{key}'")
            continue
        if not isinstance(value, bool):
            errors.append(f"Role '{name}': apply.{key} must be true or false")
            continue
        values[field_name] = value
    return RoleApplyConfig(**values)


# ============================================================================
# BOOTSTRAP
# ============================================================================


def default_roles_text() -> str:
    """Return the packaged default roles file."""
    return resources.files("player_roles").joinpath("data/default_roles.json").read_text("utf-8")


def ensure_config(path: Path, *, legacy_path: Path | None = None) -> bool:
    """
    Make sure a roles file exists at ``path``.

    A legacy roles file is moved into place when present; otherwise the
    packaged default is written.

    Returns:
        True if the file exists afterwards.
    """
    if path.exists():
        return True

    if legacy_path is None:
        legacy_path = PROJECT_ROOT / config.roles.legacy_path

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        if legacy_path.exists():
            shutil.move(str(legacy_path), str(path))
            logger.info("Moved legacy roles file %s to %s", legacy_path, path)
            return True

        path.write_text(default_roles_text(), encoding="utf-8")
        logger.info("Created default roles file at %s", path)
        return True
    except OSError as e:
        logger.warning("Failed to create default roles configuration at %s: %s", path, e)
        return False


def setup_roles(
    handle: RegistryHandle,
    path: str | Path | None = None,
    *,
    default: PermissionResult | None = None,
) -> list[str]:
    """
    Bootstrap the roles file if needed and load it into ``handle``.

    Returns:
        Error messages; empty on success. On failure the handle keeps its
        previous registry.
    """
    loader = RoleConfigLoader(path, default=default)
    if not ensure_config(loader.path):
        return [f"Roles configuration is missing and could not be created at {loader.path}"]
    return handle.reload(loader.load)
