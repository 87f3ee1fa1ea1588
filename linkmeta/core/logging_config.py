"""Logging setup for the service and the CLI.

LOG_FORMAT selects the output:
- "json": one object per line (timestamp, level, logger, message, request_id)
- "text": single-line records for local development
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from linkmeta.middleware.request_id import get_request_id

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s"
JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s %(request_id)s"

# Third-party loggers that log every outbound request at INFO.
QUIET_LOGGERS = {"httpx": logging.WARNING, "httpcore": logging.WARNING}


class RequestIDFilter(logging.Filter):
    """Stamp each record with the current unfurl's request ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(
            fmt=JSON_FIELDS,
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
        )
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(log_format: str = "json", log_level: str = "INFO", stream=None):
    """Replace the root handlers with a single request-aware handler.

    Args:
        log_format: "json" or "text"
        log_level: level name; unknown names fall back to INFO
        stream: output stream, stdout by default (the CLI passes stderr)
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(build_formatter(log_format))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
