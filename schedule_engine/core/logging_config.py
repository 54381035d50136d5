"""Logging configuration for the Schedule Command Engine application.
"""

import logging
import logging.config
from typing import Any, Dict, Union

# Define logging format
LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries whose INFO output drowns out our own
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "googleapiclient.discovery": logging.WARNING,
    "googleapiclient.discovery_cache": logging.ERROR,
}


def build_logging_config(level: Union[int, str] = logging.INFO) -> Dict[str, Any]:
    """Builds the dictConfig used both by the app and by uvicorn."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    loggers: Dict[str, Any] = {
        # Root logger configuration
        "": {
            "handlers": ["console"],
            "level": level,
            "propagate": True,
        },
        "uvicorn.error": {
            "level": logging.INFO,
            "handlers": ["console"],
            "propagate": False,
        },
    }
    for name, quiet_level in QUIET_LOGGERS.items():
        loggers[name] = {
            "level": quiet_level,
            "handlers": ["console"],
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False, # Keep existing loggers (e.g., uvicorn)
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
    }


LOGGING_CONFIG = build_logging_config()


def setup_logging(level: Union[int, str] = logging.INFO) -> Dict[str, Any]:
    """Applies the logging configuration and returns it (for uvicorn's log_config)."""
    config = build_logging_config(level)
    logging.config.dictConfig(config)
    return config
