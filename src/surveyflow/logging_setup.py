"""Logging configuration for scripts and demos.

The library never configures logging on import; call configure_logging()
from an entry point to get a stdout handler for every surveyflow logger.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig
from typing import Any, Dict


def _dict_config(level: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def configure_logging(level: str = "INFO") -> None:
    """Configure logging once.

    If the root logger already has handlers, return to prevent duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config(level))
