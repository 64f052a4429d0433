"""
Logging configuration for the catalog sync service.

Environment variables:
- LOG_LEVEL: Global log level (default: INFO)
- LOG_FORMAT: simple, structured or json (default: structured)
- LOG_LEVEL_<GROUP>: Per-group override, e.g. LOG_LEVEL_SYNC=DEBUG.
  Groups: CATALOG_CLIENT, SYNC, CACHE, API, DISCARDED

Errors the cache and sync layers deliberately swallow (failed cache
writes, corrupt entries, failed background syncs) are logged on the
`catalog_sync.discarded` logger, so they can be raised or muted on
their own with LOG_LEVEL_DISCARDED.
"""

import json
import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalog_sync.config import Settings

DISCARDED_LOGGER = "catalog_sync.discarded"

# Settings field suffix -> loggers the override applies to
LEVEL_OVERRIDES: dict[str, tuple[str, ...]] = {
    "catalog_client": ("catalog_sync.services.catalog_client",),
    "sync": ("catalog_sync.services.sync", "catalog_sync.utils.batching"),
    "cache": ("catalog_sync.services.cache", "catalog_sync.services.storage"),
    "api": ("catalog_sync.api", "catalog_sync.main"),
    "discarded": (DISCARDED_LOGGER,),
}

# Request-level transport loggers; opened up only when the client is debugged
TRANSPORT_LOGGERS = ("httpx", "httpcore")

# Record attributes passed through `extra=` and shown after the message
CONTEXT_FIELDS = ("partition", "cache_key", "endpoint")


def short_logger_name(name: str) -> str:
    """catalog_sync.services.sync.session -> sync.session"""
    for prefix in ("catalog_sync.services.", "catalog_sync."):
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def record_context(record: logging.LogRecord) -> dict[str, str]:
    return {
        field: str(getattr(record, field))
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """
    Line formatter: timestamp | level | logger | message [key=value ...]
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = (
            f"{timestamp} | "
            f"{record.levelname:8} | "
            f"{short_logger_name(record.name):24} | "
            f"{record.getMessage()}"
        )

        context = record_context(record)
        if context:
            message += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": short_logger_name(record.name),
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if log_format == "structured":
        return StructuredFormatter()
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_level(value: str | None, default: int) -> int:
    if not value:
        return default
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


def setup_logging(settings: "Settings") -> None:
    """
    Configure the root handler and per-group levels from settings.

    Args:
        settings: Application settings with log configuration
    """
    root_level = parse_level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings.log_format))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(root_level)

    for group, logger_names in LEVEL_OVERRIDES.items():
        level = parse_level(getattr(settings, f"log_level_{group}", None), logging.NOTSET)
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    # Per-request transport lines only when the catalog client is being debugged
    client_level = parse_level(settings.log_level_catalog_client, root_level)
    transport_level = logging.DEBUG if client_level <= logging.DEBUG else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
