"""
Logging Configuration

Stdout logging for the API process and the seeding script.

Logger set:
    notegraph                       LOG_LEVEL (package default)
    notegraph.services.pairwise     PAIRWISE_LOG_LEVEL: per-batch progress
                                    of the exact path is logged at DEBUG
    notegraph.services.llm/judge    inherit; judge failures are WARNINGs
    uvicorn, uvicorn.access         INFO
    httpx, openai, sentence_transformers, sqlalchemy.engine
                                    WARNING (one line per request otherwise)
"""

import sys
from logging.config import dictConfig
from typing import Any

from notegraph.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers, capped regardless of LOG_LEVEL
QUIET_LOGGERS = ("httpx", "openai", "sentence_transformers", "sqlalchemy.engine")


def build_logging_config(level: str, pairwise_level: str) -> dict[str, Any]:
    """dictConfig payload; the root and package loggers share one handler."""
    loggers: dict[str, Any] = {
        "notegraph": {
            "level": level,
            "handlers": ["console"],
            "propagate": False,  # Prevent duplicate logs to root
        },
        # Child of "notegraph": propagates to its handler, own threshold
        "notegraph.services.pairwise": {"level": pairwise_level},
        "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,  # Preserve third-party loggers
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": loggers,
    }


def setup_logging(level: str | None = None) -> None:
    """
    Initialize logging. Call once at startup (app import or script main).

    Args:
        level: Overrides LOG_LEVEL for the package and root loggers.
    """
    log_level = (level or settings.LOG_LEVEL).upper()
    dictConfig(build_logging_config(log_level, settings.PAIRWISE_LOG_LEVEL.upper()))
