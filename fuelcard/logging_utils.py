"""Mini README: Application-wide logging helpers for the fuel card tracker.

Structure:
    * get_logger - module logger factory; installs the handler on first use.
    * configure_root_logger - sets the root level, accepting names or numbers.
    * level_for_environment - default level for an environment label.

Usage:
    Modules call ``get_logger(__name__)`` at import time. Entry points call
    ``configure_root_logger`` once settings are known, e.g. with
    ``settings.log_level or level_for_environment(settings.environment)``.
    The stream handler is attached once, so the uvicorn reloader importing
    modules again does not duplicate output. HTTP transport loggers are held
    at WARNING so request retries do not flood the ledger log.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_INITIALISED = False

_QUIET_LOGGERS = ("urllib3", "requests", "httpx")

_ENVIRONMENT_LEVELS = {
    "development": logging.DEBUG,
    "test": logging.WARNING,
    "production": logging.INFO,
}


def level_for_environment(environment: str) -> int:
    return _ENVIRONMENT_LEVELS.get(environment.strip().lower(), logging.INFO)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Install the shared handler (once) and apply ``level`` to the root logger."""

    global _LOGGER_INITIALISED
    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level(level))
    if _LOGGER_INITIALISED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a named logger, installing the shared handler on first use."""

    if not _LOGGER_INITIALISED:
        configure_root_logger()
    return logging.getLogger(name)
