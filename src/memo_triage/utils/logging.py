"""Logging for the memo triage service.

Every record is stamped with the current request id and, while a document is
being processed, its filename. Production emits one JSON object per line;
other environments use a readable console format.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from memo_triage.config import Settings, get_settings
from memo_triage.utils.errors import TriageException

ROOT_LOGGER = "memo_triage"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
document_var: ContextVar[Optional[str]] = ContextVar("document", default=None)

_logger: Optional[logging.Logger] = None

# Attributes every LogRecord carries; anything else arrived through `extra=`
_STOCK_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "request_id", "document", "document_tag", "extra_fields"}

_THIRD_PARTY_LEVELS = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "fastapi": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}
_LITELLM_LOGGERS = ("litellm", "LiteLLM")


class TriageContextFilter(logging.Filter):
    """Copy the request id and current document onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, "document", None) is None:
            record.document = document_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        request_id = getattr(record, "request_id", None) or request_id_var.get()
        if request_id:
            payload["request_id"] = request_id
        document = getattr(record, "document", None) or document_var.get()
        if document:
            payload["document"] = document

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(getattr(record, "extra_fields", None) or {})
        payload.update(
            {key: value for key, value in vars(record).items() if key not in _STOCK_ATTRS}
        )
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s [%(request_id)s]%(document_tag)s %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None) or request_id_var.get()
        document = getattr(record, "document", None) or document_var.get()
        record.request_id = request_id or "-"
        record.document_tag = f" <{document}>" if document else ""
        return super().format(record)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the package logger once. Later calls return the same logger."""
    global _logger

    if _logger is not None:
        return _logger

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(TriageContextFilter())
    handler.setFormatter(JSONFormatter() if settings.is_production else ConsoleFormatter())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False

    for name, third_party_level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(third_party_level)
    for name in _LITELLM_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if settings.debug else logging.WARNING)

    _logger = logger
    logger.info(
        f"Logging ready: level={settings.log_level}, environment={settings.environment.value}, "
        f"format={'json' if settings.is_production else 'console'}"
    )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the package namespace, e.g. ``memo_triage.chunking_service``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


@contextmanager
def document_context(filename: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``filename``."""
    token = document_var.set(filename)
    try:
        yield
    finally:
        document_var.reset(token)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> None:
    """Log an exception with its type, triage error code (if any) and context."""
    fields: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
        **kwargs,
    }
    if isinstance(error, TriageException):
        fields["error_code"] = error.code
        fields["status_code"] = error.status_code
        fields["details"] = error.details

    get_logger("error").error(
        f"{type(error).__name__}: {error}",
        exc_info=error,
        extra={"extra_fields": fields},
    )
