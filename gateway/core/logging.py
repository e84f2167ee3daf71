"""
Logging configuration via logging.config.dictConfig.
"""

import logging
import logging.config
from typing import Any

FORMATTERS: dict[str, dict[str, str]] = {
    "default": {
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    "detailed": {
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    "json": {
        "format": '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}',
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
}


def build_logging_config(log_level: str = "INFO", log_format: str = "default") -> dict[str, Any]:
    level = log_level.upper()
    formatter = log_format if log_format in FORMATTERS else "default"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": FORMATTERS,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            "gateway": {"level": level, "handlers": ["console"], "propagate": False},
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(log_level: str = "INFO", log_format: str = "default") -> None:
    """Configure the gateway loggers. Unknown formats fall back to "default"."""
    logging.config.dictConfig(build_logging_config(log_level, log_format))
