"""
Logging setup - one console handler for the whole service.
Modules log through logging.getLogger(__name__); nothing here is request-specific.
"""

import logging.config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Apply logging config. Safe to call more than once (last call wins)."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
            "loggers": {
                "app": {"level": level.upper()},
                # SQL echo is controlled by settings.debug on the engine
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
