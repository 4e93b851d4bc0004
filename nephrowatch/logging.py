"""Logging configuration for the service."""

from __future__ import annotations

import contextvars
import logging

from nephrowatch.config import settings

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)
consultation_id_var: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "consultation_id",
    default=None,
)

_CONTEXT_FIELDS = {
    "request_id": request_id_var,
    "consultation_id": consultation_id_var,
}

_configured = False


class ContextFilter(logging.Filter):
    """Attach request and consultation identifiers from contextvars to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in _CONTEXT_FIELDS.items():
            current = getattr(record, name, None)
            if current in (None, "-"):
                value = var.get()
                setattr(record, name, "-" if value is None else value)
        return True


def configure_logging() -> None:
    """Configure line-oriented logging for the service. Later calls are no-ops."""
    global _configured
    if _configured:
        return
    _configured = True

    factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = factory(*args, **kwargs)
        for name, var in _CONTEXT_FIELDS.items():
            if not hasattr(record, name):
                value = var.get()
                setattr(record, name, "-" if value is None else value)
        return record

    logging.setLogRecordFactory(record_factory)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=(
            "%(asctime)s %(levelname)s %(name)s %(message)s "
            "request_id=%(request_id)s consultation_id=%(consultation_id)s"
        ),
    )
    root_logger = logging.getLogger()
    root_logger.addFilter(ContextFilter())
    for handler in root_logger.handlers:
        handler.addFilter(ContextFilter())
