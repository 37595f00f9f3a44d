"""Logging for the credential store: one rotating file, tagged records.

The store is used from many threads, so handler setup happens under a lock
and the first log call from any thread configures the shared logger once.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from api_client.config import get_env, settings

LOGGER_NAME = "api_client.history"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log file
DEFAULT_BACKUP_COUNT = 7
DEFAULT_TAG = "GEN"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(tag)s] %(message)s"

# Module name keyword -> tag, checked in order.
TAG_MAP = (
    ("config", "CONF"),
    ("credential_store", "STORE"),
    ("attribute_document", "STORE"),
    ("credentials", "CRED"),
)

_setup_lock = threading.Lock()
_configured = False


class TaggedLogger(logging.LoggerAdapter):
    """Adapter that fills the ``tag`` field used by :data:`LOG_FORMAT`."""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("tag", self.extra["tag"])
        return msg, kwargs


def _resolve_level(level: Optional[str]) -> int:
    candidate = str(level or get_env("APICLIENT_LOG_LEVEL", default=settings.APICLIENT_LOG_LEVEL)).upper()
    numeric_level = logging.getLevelName(candidate)
    if isinstance(numeric_level, int):
        return numeric_level
    print(f"api_client logger: unknown log level '{candidate}', using INFO.", file=sys.stderr)
    return logging.INFO


def _console_enabled() -> bool:
    return str(get_env("APICLIENT_LOG_TO_CONSOLE", default=True)).lower() in ("true", "1", "yes", "on")


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def configure_logging(
    *,
    log_path: Optional[Path] = None,
    level: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach the rotating file (and optional console) handler.

    Later calls only adjust the level unless ``force`` or a new ``log_path``
    is given, in which case existing handlers are replaced.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)

    with _setup_lock:
        if _configured and not force and log_path is None:
            if level is not None:
                logger.setLevel(_resolve_level(level))
            return logger

        _drop_handlers(logger)
        logger.setLevel(_resolve_level(level))
        logger.propagate = False

        formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%SZ")
        formatter.converter = time.gmtime

        resolved_path = Path(log_path) if log_path is not None else settings.log_path
        try:
            resolved_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                resolved_path,
                maxBytes=max_bytes or DEFAULT_MAX_BYTES,
                backupCount=backup_count or DEFAULT_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            print(f"api_client logger: unable to open log file {resolved_path}: {exc}", file=sys.stderr)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if _console_enabled():
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(formatter)
            logger.addHandler(stream_handler)

        _configured = True
    return logger


def get_logger(tag: str = DEFAULT_TAG) -> TaggedLogger:
    """Return a logger adapter for ``tag``, configuring logging on first use."""

    return TaggedLogger(configure_logging(), {"tag": tag})


def get_tag_for_module(module_name: str) -> str:
    """Pick the tag for a module from :data:`TAG_MAP`."""

    module_name = module_name.lower()
    for keyword, tag in TAG_MAP:
        if keyword in module_name:
            return tag
    return DEFAULT_TAG


def reset_logging() -> None:
    """Remove handlers so tests can configure logging again."""

    global _configured
    with _setup_lock:
        _drop_handlers(logging.getLogger(LOGGER_NAME))
        _configured = False
