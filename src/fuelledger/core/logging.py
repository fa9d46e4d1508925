"""Structured logging configuration with JSON output and context injection."""

import contextvars
import logging
import logging.config
from datetime import date
from decimal import Decimal
from uuid import UUID

import structlog

# Context var for request ID (safe across async tasks)
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="no-request-id"
)


def get_request_id() -> str:
    """Get current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    """Set request ID for current context."""
    request_id_var.set(request_id)
    structlog.contextvars.bind_contextvars(request_id=request_id)


def stringify_ledger_values(logger, method_name, event_dict):
    """Render amounts, ids and dates as plain strings.

    Decimal amounts keep their exact digits ("3800.00", not 3800.0).
    """
    for key, value in event_dict.items():
        if isinstance(value, (Decimal, UUID)):
            event_dict[key] = str(value)
        elif isinstance(value, date):
            event_dict[key] = value.isoformat()
    return event_dict


_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.add_log_level,
    stringify_ledger_values,
]


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog and stdlib logging to emit one JSON object per line."""
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and sqlalchemy records go through the same JSON pipeline
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": _SHARED_PROCESSORS,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.processors.JSONRenderer(),
                    ],
                },
            },
            "handlers": {
                "default": {
                    "level": level,
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "": {"handlers": ["default"], "level": level, "propagate": True},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structlog logger bound to the module name."""
    return structlog.get_logger(name)
