"""Application-wide logger writing to platformdirs user_log_dir."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "famtrack"
_LOG_FILE = "famtrack.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_logger: logging.Logger | None = None


def _root_logger() -> logging.Logger:
    global _logger
    if _logger is not None:
        return _logger

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(logging.DEBUG)
    # Other handlers (e.g. pytest log capture) may already be attached
    if not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
        log_dir = Path(user_log_dir(_APP_NAME))
        log_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            log_dir / _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    return _logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, or a child of it for *name*.

    Without a name the file handler is installed on first use. Named
    loggers only join the ``famtrack`` hierarchy, so module-level
    ``get_logger(__name__)`` calls never touch the filesystem at import
    time; their records reach the file once the application logger exists.
    """
    if not name or name == _APP_NAME:
        return _root_logger()
    prefix = f"{_APP_NAME}."
    suffix = name[len(prefix):] if name.startswith(prefix) else name
    return logging.getLogger(_APP_NAME).getChild(suffix)


def set_level(level: str | int) -> None:
    """Change the application log level (e.g. from configuration)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    _root_logger().setLevel(level)
