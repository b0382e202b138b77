"""Logging setup driven by ``config.logging``.

Modules log through ``logging.getLogger(__name__)``; this module only wires
the root handler once at process start (CLI and API server entry points).
"""

from __future__ import annotations

import json
import logging
import sys

FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str = "INFO", fmt: str = "detailed") -> logging.Handler:
    """Install a stderr handler on the root logger and return it."""
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(FORMATS.get(fmt, FORMATS["detailed"])))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_player_roles", False):
            root.removeHandler(existing)
    handler._player_roles = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler
