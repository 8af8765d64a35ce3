"""
Relay logging setup.

Root handlers come from the `logging` config section. The websockets
library logs every frame and handshake at debug, so its logger gets its
own level and stays quiet when the relay itself runs at debug.
"""

from __future__ import annotations

import logging

from touchrelay import __version__
from touchrelay.common.config import LoggingConfig

__all__ = ["logging_setup", "logFormat_versioned", "logLevel_resolve"]

WEBSOCKETS_LOGGER_NAME = "websockets"


def logLevel_resolve(level_name: str) -> int:
    """
    Map a level name to its numeric value.

    Args:
        level_name: Level name such as "info" or "DEBUG".

    Returns:
        Numeric logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{level_name}'")
    return level


def logFormat_versioned(log_format: str) -> str:
    """Tag each record's timestamp with the running touchrelay version."""
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")


def logging_setup(logging_config: LoggingConfig, level_override: str | None = None) -> None:
    """
    Configure root handlers and the websockets logger.

    Args:
        logging_config: Logging section of the loaded config.
        level_override: Level from a CLI flag; wins over the config level.
    """
    root_level: int = logLevel_resolve(level_override or logging_config.level)
    websockets_level: int = logLevel_resolve(logging_config.websockets_level)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logging_config.file:
        handlers.append(logging.FileHandler(logging_config.file))

    logging.basicConfig(
        level=root_level,
        format=logFormat_versioned(logging_config.format),
        handlers=handlers,
    )
    logging.getLogger(WEBSOCKETS_LOGGER_NAME).setLevel(websockets_level)
