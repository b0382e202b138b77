"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings. The roles themselves live in a
separate file (``roles.path``), loaded by :mod:`player_roles.loader`.

Usage:
    from player_roles.config import config

    print(config.roles.absolute_path)
    print(config.roles.default_result)

Environment Variable Mapping:
    ROLES_HOST             -> server.host
    ROLES_PORT             -> server.port
    ROLES_PRODUCTION       -> security.production
    ROLES_ADMIN_TOKEN      -> security.admin_token
    ROLES_CONFIG_PATH      -> roles.path
    ROLES_DEFAULT_RESULT   -> roles.default_result
    ROLES_LOG_LEVEL        -> logging.level
    ROLES_LOG_FORMAT       -> logging.format
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from player_roles.rules import PermissionResult

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration for the admin API."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 8000


@dataclass
class SecuritySettings:
    """Security-related configuration."""

    production: bool = False
    docs_enabled: Literal["auto", "enabled", "disabled"] = "auto"
    admin_token: str = ""  # required by /admin routes in production


@dataclass
class RolesSettings:
    """Roles file location and matching defaults."""

    path: str = "config/roles.json"
    legacy_path: str = "roles.json"
    default_result: PermissionResult = PermissionResult.DENY

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the roles file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    Aggregates all settings sections. Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    roles: RolesSettings = field(default_factory=RolesSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Convenience property for production mode check."""
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """Determine if API docs should be enabled based on settings."""
        if self.security.docs_enabled == "enabled":
            return True
        if self.security.docs_enabled == "disabled":
            return False
        # "auto" - follow production setting
        return not self.is_production


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Security section
    if parser.has_section("security"):
        if parser.has_option("security", "production"):
            cfg.security.production = _parse_bool(parser.get("security", "production"))
        if parser.has_option("security", "docs_enabled"):
            val = parser.get("security", "docs_enabled").lower()
            if val in ("auto", "enabled", "disabled"):
                cfg.security.docs_enabled = val  # type: ignore[assignment]
        if parser.has_option("security", "admin_token"):
            cfg.security.admin_token = parser.get("security", "admin_token")

    # Roles section
    if parser.has_section("roles"):
        if parser.has_option("roles", "path"):
            cfg.roles.path = parser.get("roles", "path")
        if parser.has_option("roles", "legacy_path"):
            cfg.roles.legacy_path = parser.get("roles", "legacy_path")
        if parser.has_option("roles", "default_result"):
            cfg.roles.default_result = PermissionResult.parse(
                parser.get("roles", "default_result")
            )

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("ROLES_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("ROLES_PORT"):
        cfg.server.port = int(env_port)

    # Security settings
    if env_production := os.getenv("ROLES_PRODUCTION"):
        cfg.security.production = _parse_bool(env_production)
    if env_token := os.getenv("ROLES_ADMIN_TOKEN"):
        cfg.security.admin_token = env_token

    # Roles settings
    if env_path := os.getenv("ROLES_CONFIG_PATH"):
        cfg.roles.path = env_path
    if env_default := os.getenv("ROLES_DEFAULT_RESULT"):
        cfg.roles.default_result = PermissionResult.parse(env_default)

    # Logging settings
    if env_log := os.getenv("ROLES_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_format := os.getenv("ROLES_LOG_FORMAT"):
        if env_format.lower() in ("simple", "detailed", "json"):
            cfg.logging.format = env_format.lower()  # type: ignore[assignment]


def load_config() -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    # Determine which config file to use
    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "ServerConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. It does not reload the
    roles file; use :meth:`RegistryHandle.reload` for that.

    Returns:
        ServerConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging and admin dashboards.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "production_mode": config.is_production,
        "roles_path": str(config.roles.absolute_path),
        "roles_file_exists": config.roles.absolute_path.exists(),
        "default_result": config.roles.default_result.value,
        "docs_enabled": config.docs_should_be_enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:      {config.server.host}:{config.server.port}")
    print(f"Production:  {config.is_production}")
    print(f"Roles file:  {status['roles_path']}")
    print(f"Default:     {status['default_result']}")
    print(f"Log level:   {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_roles_file:
    """
    Context manager for pointing the config system at a temporary roles file.

    Usage:
        from player_roles.config import use_roles_file

        def test_something(tmp_path):
            roles_path = tmp_path / "roles.json"
            with use_roles_file(roles_path):
                # Loader calls without an explicit path will use roles_path
                ...

    Args:
        roles_path: Path to the roles file
    """

    def __init__(self, roles_path: Path | str):
        self.roles_path = Path(roles_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up roles file path."""
        self.original_path = config.roles.path
        config.roles.path = str(self.roles_path)
        return self.roles_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original roles file path."""
        if self.original_path is not None:
            config.roles.path = self.original_path
        return None
