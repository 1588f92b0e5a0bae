"""
Logging setup.

Modules log through `logging.getLogger(__name__)`; this only installs the
process-wide handler once at application start-up.
"""

import logging.config

from .config import Settings


def configure_logging(settings: Settings) -> None:
    """Install a single stream handler at the configured level."""
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # Vendor SDKs are chatty at INFO
                "httpx": {"level": "WARNING"},
                "stripe": {"level": "WARNING"},
            },
        }
    )
