"""Logging setup for apkfetch.

Library modules log through ``logging.getLogger(__name__)``, which places
them under the ``apkfetch`` logger. Nothing is attached to it until the
CLI (or an embedding application) calls ``configure_logging``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "apkfetch"
LOG_LEVEL_ENV_VAR = "APKFETCH_LOG_LEVEL"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(LOGGER_NAME)


def _resolve_level(level_name: str) -> int | None:
    level = getattr(logging, level_name.upper(), None)
    return level if isinstance(level, int) else None


def set_log_level(level_name: str) -> None:
    """Set the level of the apkfetch logger and all of its handlers.

    Invalid level names log a warning and leave the configuration unchanged.
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning("Invalid log level name: %s. Using current level.", level_name)
        return

    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    logger.debug("Log level set to %s", logging.getLevelName(level))


def configure_logging(
    level_name: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> logging.Logger:
    """Attach a Rich console handler to the apkfetch logger.

    Replaces handlers from earlier calls. Logs go to stderr so stdout stays
    usable for printed paths.

    Args:
        level_name: Explicit level. Falls back to APKFETCH_LOG_LEVEL, then
            WARNING.
        environ: Environment mapping, defaults to os.environ.

    Returns:
        The configured logger.
    """
    env = os.environ if environ is None else environ
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        show_path=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    requested = level_name or env.get(LOG_LEVEL_ENV_VAR) or "WARNING"
    level = _resolve_level(requested)
    if level is None:
        level = logging.WARNING
        logger.warning("Invalid %s=%s; defaulting to WARNING.", LOG_LEVEL_ENV_VAR, requested)

    logger.setLevel(level)
    console_handler.setLevel(level)
    return logger
