"""Player Roles: tiered command permission overrides for multiplayer servers.

Players are granted named, levelled roles. Each role carries an ordered list of
pattern-based allow/deny rules that decide, per command, whether the player's
default permission should be overridden.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("player-roles")
except PackageNotFoundError:
    __version__ = "0.1.0"
