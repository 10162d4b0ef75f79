"""Logging configuration helpers."""
from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any, Dict

from .config import Settings, load_settings

APP_LOG_NAME = "educhat.log"
STREAM_LOG_NAME = "stream.log"


class _JsonFormatter(logging.Formatter):
    """Lightweight JSON formatter that avoids external dependencies."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False)


def build_logging_config(settings: Settings | None = None) -> Dict[str, Any]:
    """Return a dictionary config for logging."""

    settings = settings or load_settings()
    level = settings.logging.level
    formatter = "json" if settings.logging.json_output else "console"
    log_dir = settings.logging.log_dir

    handlers: Dict[str, Any] = {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": formatter,
            "level": level,
        },
        "uvicorn": {
            "class": "logging.StreamHandler",
            "formatter": "console",
        },
    }
    root_handlers = ["default"]
    chat_handlers = ["default"]
    if settings.logging.file_logging:
        handlers["app_file"] = {
            "class": "logging.FileHandler",
            "formatter": "json",
            "level": level,
            "filename": str(log_dir / APP_LOG_NAME),
            "encoding": "utf-8",
            "mode": "a",
        }
        handlers["stream_file"] = {
            "class": "logging.FileHandler",
            "formatter": "json",
            "level": "DEBUG",
            "filename": str(log_dir / STREAM_LOG_NAME),
            "encoding": "utf-8",
            "mode": "a",
        }
        root_handlers.append("app_file")
        chat_handlers.extend(["app_file", "stream_file"])

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": f"{__name__}._JsonFormatter",
            },
            "console": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {"handlers": root_handlers, "level": level},
            "uvicorn": {"handlers": ["uvicorn"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "educhat.chat": {
                "handlers": chat_handlers,
                "level": level,
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings | None = None) -> None:
    """Configure logging for the application."""

    settings = settings or load_settings()
    if settings.logging.file_logging:
        settings.logging.log_dir.mkdir(parents=True, exist_ok=True)
    dictConfig(build_logging_config(settings))


__all__ = ["setup_logging", "build_logging_config"]
