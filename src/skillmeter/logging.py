"""Structured logging for skillmeter.

All output goes to stderr so that CLI commands can print JSON or
Markdown on stdout without interleaving. Quiet by default (WARNING).

Each subsystem (telemetry.store, analysis.advisor, ...) gets its own
logger tagged with its name. The level comes from SKILLMETER_LOG_LEVEL,
and set_level() overrides it for every subsystem at once, which is what
the CLI's --verbose flag does.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_VAR = "SKILLMETER_LOG_LEVEL"

# Cache configured loggers
_loggers: dict[str, logging.Logger] = {}

# Set by set_level(); wins over the environment for loggers created later
_level_override: int | None = None


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger.

    Logs to stderr with format: [skillmeter:{name}] {level}: {message}
    Default level is WARNING; override with SKILLMETER_LOG_LEVEL.

    Args:
        name: Logger name (typically the dotted module path below the package).

    Returns:
        Configured logger instance.
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(f"skillmeter.{name}")

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(f"[skillmeter:{name}] %(levelname)s: %(message)s"))
        logger.addHandler(handler)

        if _level_override is not None:
            logger.setLevel(_level_override)
        else:
            logger.setLevel(_resolve_level(os.environ.get(LOG_LEVEL_VAR, "WARNING")))

    _loggers[name] = logger
    return logger


def set_level(level: str | int) -> None:
    """Set the level of every skillmeter logger, present and future.

    Args:
        level: Level name ("DEBUG", "info", ...) or logging constant.
            Unknown names fall back to WARNING.
    """
    global _level_override

    _level_override = level if isinstance(level, int) else _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(_level_override)
