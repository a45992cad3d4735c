"""
Structured logging setup for VoxPay.

Configures structlog for JSON-formatted structured logging across all
services. Every log line includes timestamp, level, service name, and
event. Per-session context (session_id) is bound at processing time.
"""

from __future__ import annotations

import logging
import sys

import structlog


def _add_service_name(service_name: str) -> structlog.types.Processor:
    """Build a processor stamping *service_name* onto every event dict."""

    def _processor(
        _logger: object, _method: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return _processor


def configure_logging(service_name: str, log_level: str = "INFO", *, json: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        service_name: Value of the ``service`` key on every log line.
        log_level: Minimum level name (``"DEBUG"``, ``"INFO"``, ...).
        json: Render JSON lines; ``False`` renders coloured console output.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
