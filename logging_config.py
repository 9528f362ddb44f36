from __future__ import annotations

import logging
from enum import Enum
from logging.config import dictConfig
from typing import Iterable, Sequence

from settings import get_settings

_PIPELINE_EXTRA_KEYS = (
    "series",
    "row_number",
    "reason",
    "row_count",
    "sample_count",
    "dropped_count",
    "strategy",
    "policy",
    "processing_ms",
)

# Third-party loggers that are chatty at INFO during uploads.
_NOISY_LOGGERS = ("httpx", "multipart", "python_multipart")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append selected ``extra`` attributes to the message as ``key=value`` pairs."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _PIPELINE_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={_render(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def _render(value: object) -> str:
    if isinstance(value, float):
        return f"{value:.1f}"
    if isinstance(value, Enum):
        # enum members log by their wire value
        return str(value.value)
    return str(value)


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with pipeline context appended."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_PIPELINE_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                name: {"level": "WARNING", "propagate": True} for name in _NOISY_LOGGERS
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
