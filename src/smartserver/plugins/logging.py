"""Logging plugin (source of truth).

Responsibilities
----------------
- Contribute ``--log_level`` (env ``MICRO_LOG_LEVEL``) to the server command.
- On init, configure the ``smartserver`` logger at the requested level.
- Level precedence: command-line/environment value, then the ``level``
  configured at registration (default ``"info"``).

``setup_logging(level, fmt=None)`` attaches one stream handler to the
``smartserver`` logger (idempotent: an existing handler is reused) and sets the
level. Unknown level names raise ``ValueError``.

Registration
------------
At module import, the plugin registers itself on the process-wide registry via
``register_plugin(LoggingPlugin)``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import click

from smartserver.core.registry import register_plugin
from smartserver.plugins._base_plugin import BasePlugin, PluginContext

__all__ = ["LoggingPlugin", "setup_logging"]

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(service)s] %(message)s"

_LEVELS = ("debug", "info", "warning", "error", "critical")


class _ServiceField(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = "-"
        return True


def setup_logging(level: str = "info", fmt: Optional[str] = None) -> logging.Logger:
    """Configure the package logger; safe to call more than once."""
    name = level.strip().lower()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level '{level}'. Allowed: {', '.join(_LEVELS)}")
    logger = logging.getLogger("smartserver")
    handler = next((h for h in logger.handlers if getattr(h, "_smartserver", False)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler._smartserver = True  # type: ignore[attr-defined]
        handler.addFilter(_ServiceField())
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.setLevel(name.upper())
    return logger


class LoggingPlugin(BasePlugin):
    """Configures process logging before the server starts."""

    plugin_code = "logging"
    plugin_description = "Sets the server log level and output format"

    def configure(self, level: str = "info", fmt: Optional[str] = None):
        """Configure the default level and format."""
        pass  # Storage is handled by the wrapper

    def flags(self) -> List[click.Option]:
        return [
            click.Option(
                ["--log_level"],
                envvar="MICRO_LOG_LEVEL",
                type=click.Choice(_LEVELS, case_sensitive=False),
                help="Set the log level",
            )
        ]

    def init(self, context: PluginContext) -> None:
        cfg = self.configuration()
        level = context.values.get("log_level") or cfg.get("level", "info")
        setup_logging(level, cfg.get("fmt"))


register_plugin(LoggingPlugin)
