"""
Logging for the reporting API.

Every record written while a request is being served carries that request's
id and the caller's role (``X-User-Role``), so a report's submission,
feedback and escalation lines can be traced back to one call and one actor.

Settings:
    LOG_LEVEL   DEBUG in development, INFO otherwise
    LOG_FORMAT  "json" (production default) or "text"
"""

import json
import logging
import sys
from datetime import datetime, timezone

from flask import g, has_request_context, request

# Attributes passed through ``extra=`` by the request timing hooks
REQUEST_FIELDS = ("method", "path", "status", "duration_ms")

QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine")


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` and ``role`` onto records emitted inside a request."""

    def __init__(self, role_header: str):
        super().__init__()
        self.role_header = role_header

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", None)
            record.role = request.headers.get(self.role_header) or None
        else:
            record.request_id = None
            record.role = None
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("request_id", "role") + REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = round(value, 1) if key == "duration_ms" else value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``12:00:01 INFO  faculty_reporting.x [ab12cd/prl]: message``"""

    LEVEL_COLORS = {"WARNING": "\033[33m", "ERROR": "\033[31m", "CRITICAL": "\033[35m"}

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<5}"
        if self.color and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}\033[0m"
        request_id = getattr(record, "request_id", None)
        tag = ""
        if request_id:
            role = getattr(record, "role", None)
            tag = f" [{request_id}/{role}]" if role else f" [{request_id}]"
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} {level} {record.name}{tag}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install one stderr handler on the root logger, configured from ``app.config``."""
    debug = app.config.get("DEBUG", False) or app.config.get("TESTING", False)
    level_name = str(app.config.get("LOG_LEVEL") or ("DEBUG" if debug else "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = (app.config.get("LOG_FORMAT") or ("text" if debug else "json")).lower()

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(color=sys.stderr.isatty()))
    handler.addFilter(RequestContextFilter(app.config.get("ROLE_HEADER", "X-User-Role")))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    app.logger.debug("Logging configured: level=%s format=%s", level_name, fmt)
