"""
Shared logging configuration for the WeChat SDK.
"""

import sys
import structlog
import logging
import uuid
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from contextvars import ContextVar

from .config import get_settings

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
app_id_var: ContextVar[Optional[str]] = ContextVar('app_id', default=None)


def configure_logging(service_name: str = "wechat", log_level: Optional[str] = None) -> None:
    """Configure structured logging for an application embedding the SDK.

    The level defaults to ``SDKSettings.log_level``.
    """
    if log_level is None:
        log_level = get_settings().log_level

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _service_context(service_name),
            add_correlation_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def _service_context(service_name: str):
    def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Add service name to log events."""
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service_context


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    app_id = app_id_var.get()
    if app_id and "app_id" not in event_dict:
        event_dict["app_id"] = app_id

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_app_context(app_id: Optional[str] = None):
    """Set the WeChat app id for log correlation."""
    if app_id:
        app_id_var.set(app_id)


@contextmanager
def bind_app_id(app_id: Optional[str]) -> Iterator[None]:
    """Attach ``app_id`` to log events emitted inside the block."""
    token = app_id_var.set(app_id or app_id_var.get())
    try:
        yield
    finally:
        app_id_var.reset(token)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    app_id_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
