"""
Logging Configuration
Console logging always; a rotating file when LOG_DIR is configured.
"""

import logging
import logging.config
import os
from pathlib import Path

from infographic_api.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure logging for the application."""
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "default",
            "level": settings.LOG_LEVEL,
        },
    }
    if settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(settings.LOG_DIR, "app.log"),
            "maxBytes": 5 * 1024 * 1024,  # 5 MB
            "backupCount": 5,
            "formatter": "default",
            "level": settings.LOG_LEVEL,
            "encoding": "utf8",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": handlers,
            "loggers": {
                "infographic_api": {
                    "handlers": list(handlers),
                    "level": settings.LOG_LEVEL,
                    "propagate": True,
                },
                "uvicorn": {
                    "handlers": list(handlers),
                    "level": "INFO",
                    "propagate": False,
                },
            },
        }
    )
