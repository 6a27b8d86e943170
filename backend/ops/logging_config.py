"""
Structured logging configuration.

Production writes JSON lines to stdout so document numbering, payment
allocation and statement fallbacks can be traced in a log aggregator.
Development keeps a human-readable console format.

Environment variables:
- LOG_FORMAT: "json" or "console" (default: json in production)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""
import json
import logging
import os
from datetime import datetime, timezone

# Loggers owned by this project. Each module logs through
# logging.getLogger(__name__), so the package name is the logger root.
APP_LOGGERS = ("parties", "billing", "statements", "ops")

# Context keys the ledger modules pass in `extra=`. They are lifted to the
# top level of the JSON line; anything else lands under "context".
LEDGER_KEYS = (
    "document_type",
    "document_number",
    "next_number",
    "payment_number",
    "party_type",
    "party_id",
    "field",
)

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _handler(formatter: str) -> dict:
    handler = {"class": "logging.StreamHandler", "formatter": formatter}
    if formatter == "json":
        handler["stream"] = "ext://sys.stdout"
    return handler


def get_logging_config(debug: bool = False) -> dict:
    """Build Django's LOGGING dict from DEBUG and the LOG_* environment."""
    level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    formatter = os.environ.get("LOG_FORMAT", "console" if debug else "json")
    if formatter not in ("json", "console"):
        formatter = "json"

    loggers = {
        "": {"handlers": ["console"], "level": level},
        "django": {"handlers": ["console"], "level": level, "propagate": False},
        "django.request": {
            "handlers": ["console"],
            "level": level if debug else "ERROR",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console" if debug else "null"],
            "level": "DEBUG" if debug else "INFO",
            "propagate": False,
        },
    }
    # App records reach the console through the root handler. They propagate
    # so pytest's caplog can capture them.
    loggers.update({name: {"level": level, "propagate": True} for name in APP_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "ops.logging_config.JsonFormatter"},
            "console": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": _handler(formatter),
            "null": {"class": "logging.NullHandler"},
        },
        "loggers": loggers,
    }


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields: timestamp (UTC, from the record's creation time), level,
    logger, message, source ("module:line"), the ledger keys when present,
    "context" for any other extra values, and "exception" when exc_info is
    set. Values json cannot encode are rendered with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.lineno}",
        }

        context = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS:
                continue
            if key in LEDGER_KEYS:
                entry[key] = value
            else:
                context[key] = value
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
