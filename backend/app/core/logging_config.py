"""Process-wide logging setup.

- Console handler always, rotating file handler under backend/logs when
  LOG_TO_FILE is set
- Plain text or one JSON object per line (LOG_JSON)
- Every record carries the request id of the HTTP request that produced it
"""

import json
import logging
import logging.handlers
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from config.settings import get_settings

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "logs")
LOG_FILE_NAME = "dashboard.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s"

# Set per request by CorrelationIdMiddleware; "-" outside a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id to the current context, generating a short one if none is given."""
    rid = request_id or uuid.uuid4().hex[:8]
    request_id_var.set(rid)
    return rid


class JSONFormatter(logging.Formatter):
    """One JSON object per record; StructuredLogger context is merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", request_id_var.get()),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(entry, default=str)


class RequestIdFilter(logging.Filter):

    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def setup_logging(json_format: Optional[bool] = None) -> Optional[str]:
    """
    Install the root handlers. Safe to call again; previous handlers are replaced.

    Args:
        json_format: Override LOG_JSON

    Returns:
        Path of the log file, or None when logging to the console only
    """
    settings = get_settings()
    if json_format is None:
        json_format = settings.log_json

    handlers = [logging.StreamHandler()]
    log_file = None
    if settings.log_to_file:
        os.makedirs(LOG_DIR, exist_ok=True)
        log_file = os.path.join(LOG_DIR, LOG_FILE_NAME)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        ))

    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT)
    request_id_filter = RequestIdFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_id_filter)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    for noisy in ("sqlalchemy", "urllib3", "yfinance", "peewee"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured", extra={"extra_fields": {"log_file": log_file}})
    return log_file
