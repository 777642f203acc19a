import json
import logging
from logging.config import dictConfig
from typing import Any, Dict

from cabinet.settings import CabinetSettings

# --------------------------------------------------------------------------- #
# Logging configuration
# --------------------------------------------------------------------------- #
LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        # messages are already JSON payloads
        "default": {
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "cabinet": {
            "handlers": ["console"],
            "level": CabinetSettings().log_level.upper(),
            "propagate": False,
        },
    },
}

dictConfig(LOGGING_CONFIG)

# --------------------------------------------------------------------------- #
# Public logger instance
# --------------------------------------------------------------------------- #
logger: logging.Logger = logging.getLogger("cabinet")


def set_level(level: str | int) -> None:
    """Change the level of the ``cabinet`` logger at runtime."""
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)


class CabinetLogger:
    """
    Class-based logging interface for the ``cabinet`` library.

    Every call emits one JSON payload ``{"event": ..., "data": {...}}``.
    """
    _logger: logging.Logger = logger

    # ------------------------------------------------------------------ #
    # Standard logging wrappers
    # ------------------------------------------------------------------ #
    @classmethod
    def debug(cls, event_type: str, **data: Any) -> None:
        cls._log_event(event_type, level=logging.DEBUG, **data)

    @classmethod
    def info(cls, event_type: str, **data: Any) -> None:
        cls._log_event(event_type, level=logging.INFO, **data)

    @classmethod
    def warning(cls, event_type: str, **data: Any) -> None:
        cls._log_event(event_type, level=logging.WARNING, **data)

    @classmethod
    def error(cls, event_type: str, **data: Any) -> None:
        cls._log_event(event_type, level=logging.ERROR, **data)

    @classmethod
    def critical(cls, event_type: str, **data: Any) -> None:
        cls._log_event(event_type, level=logging.CRITICAL, **data)

    # ------------------------------------------------------------------ #
    # Structured event logging
    # ------------------------------------------------------------------ #
    @classmethod
    def _log_event(
        cls,
        event_type: str,
        *,
        level: int = logging.INFO,
        log: logging.Logger | None = None,
        **data: Any,
    ) -> None:
        target = log or cls._logger
        if not target.isEnabledFor(level):
            return
        payload: Dict[str, Any] = {"event": event_type}
        if data:
            payload["data"] = data
        target.log(level, json.dumps(payload, default=str))
