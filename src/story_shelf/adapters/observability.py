"""Logging for the story_shelf service process.

Every module logs under the ``story_shelf`` namespace (``story.*`` events from
the service, ``store.*`` and ``api.*`` events from the HTTP layer, ``cover.*``
from the blob store). That namespace gets its own console and rotating file
handlers; uvicorn keeps its own loggers and only the access log level is tuned.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

SERVICE_LOGGER = "story_shelf"
ACCESS_LOGGER = "uvicorn.access"
DEFAULT_LOG_PATH = Path("work/logs/story_shelf.log")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _level(raw: str | None, default: int) -> int:
    value = getattr(logging, (raw or "").strip().upper(), None)
    return value if isinstance(value, int) else default


def _positive_int(raw: str | None, default: int) -> int:
    try:
        value = int((raw or "").strip())
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class LoggingSettings:
    level: int = logging.INFO
    access_level: int = logging.WARNING
    log_path: Path = DEFAULT_LOG_PATH
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 10

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LoggingSettings:
        """Read ``STORY_SHELF_LOG_*`` settings; unusable values keep the defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        raw_path = env.get("STORY_SHELF_LOG_PATH", "").strip()
        return cls(
            level=_level(env.get("STORY_SHELF_LOG_LEVEL"), defaults.level),
            access_level=_level(env.get("STORY_SHELF_ACCESS_LOG_LEVEL"), defaults.access_level),
            log_path=Path(raw_path) if raw_path else defaults.log_path,
            max_bytes=_positive_int(env.get("STORY_SHELF_LOG_MAX_BYTES"), defaults.max_bytes),
            backup_count=_positive_int(
                env.get("STORY_SHELF_LOG_BACKUP_COUNT"), defaults.backup_count
            ),
        )


def configure_runtime_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """Attach console and rotating file handlers to the service logger.

    Calling it again swaps the handlers instead of stacking them.
    """
    effective = settings or LoggingSettings.from_env()
    effective.log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    file_handler = RotatingFileHandler(
        filename=effective.log_path,
        maxBytes=effective.max_bytes,
        backupCount=effective.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    service_logger = logging.getLogger(SERVICE_LOGGER)
    for handler in list(service_logger.handlers):
        service_logger.removeHandler(handler)
        handler.close()
    service_logger.addHandler(stream_handler)
    service_logger.addHandler(file_handler)
    service_logger.setLevel(effective.level)
    service_logger.propagate = False

    logging.getLogger(ACCESS_LOGGER).setLevel(effective.access_level)
    return service_logger
