"""Logging setup for wallet-ledger.

Ledger modules attach structured context to a record with
``extra={"extra": {...}}`` (``stage``, ``error``, ``amount``, ``otp_key``
and so on). ``JsonFormatter`` lifts that context into top-level fields and
``ContextFormatter`` appends it as ``key=value`` pairs. Both mask OTP codes
that end up in the context.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

SECRET_FIELDS = frozenset({"code", "otp", "otp_code"})
REDACTED = "***"

# Third-party loggers held at WARNING or above
QUIET_LOGGERS = ("confluent_kafka", "faker", "asyncio")


def ledger_context(record: logging.LogRecord) -> dict[str, Any]:
    """Structured context attached to ``record`` with secrets masked."""
    context = getattr(record, "extra", None)
    if not isinstance(context, dict):
        return {}
    return {key: REDACTED if key in SECRET_FIELDS else value for key, value in context.items()}


class ContextFormatter(logging.Formatter):
    """Pipe-separated text lines with the ledger context appended."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = ledger_context(record)
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record; context keys become top-level fields.

    Context never overrides the base fields (``timestamp``, ``level``,
    ``logger``, ``message``, ``exception``).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in ledger_context(record).items():
            log_data.setdefault(key, value)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Route all logging to stdout in the chosen format.

    Parameters
    ----------
    level : str
        Level name for the root and ``wallet_ledger`` loggers; unknown
        names fall back to INFO.
    format_type : str
        ``"json"`` for ``JsonFormatter``, anything else for
        ``ContextFormatter``.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if format_type == "json" else ContextFormatter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("wallet_ledger").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
