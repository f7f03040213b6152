"""Logging setup utilities for moodlight.

Routes the relay's own loggers and those of the web stack it runs on
(uvicorn, python-socketio, python-engineio) through one set of handlers
built from the logging section of the settings.

Safe to call more than once: handlers installed by a previous call are
replaced, never stacked.
"""

from __future__ import annotations

import logging
import sys

from moodlight.config.settings import LoggingConfig

APP_LOGGER = "moodlight"

# uvicorn.error and uvicorn.access propagate into "uvicorn"
SERVER_LOGGERS = ("uvicorn",)

# Socket.IO traffic is logged per packet; only shown in debug mode
SOCKETIO_LOGGERS = ("socketio.server", "engineio.server")

# Marks handlers owned by setup_logging
_HANDLER_FLAG = "_moodlight_handler"


def _resolve_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _build_handlers(config: LoggingConfig) -> list[logging.Handler]:
    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_FLAG, True)
    return handlers


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()


def managed_loggers() -> list[logging.Logger]:
    """Every logger whose handlers setup_logging owns."""
    names = (APP_LOGGER, *SERVER_LOGGERS, *SOCKETIO_LOGGERS)
    return [logging.getLogger(name) for name in names]


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the 'moodlight' logger and the web stack's loggers.

    Socket.IO and Engine.IO packet logs only show at DEBUG; at any
    other level those two loggers stay at WARNING.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    level = _resolve_level(config.level)
    handlers = _build_handlers(config)

    for logger in managed_loggers():
        _reset_handlers(logger)
        for handler in handlers:
            logger.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(level)
    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)
    socketio_level = level if level <= logging.DEBUG else logging.WARNING
    for name in SOCKETIO_LOGGERS:
        logging.getLogger(name).setLevel(socketio_level)

    logging.getLogger(APP_LOGGER).info("Logging initialized at %s level", config.level)
