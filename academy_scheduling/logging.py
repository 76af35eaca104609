"""Structured logging for the scheduling service.

Every event carries the service name and the emitting module, so conflict
and data-quality warnings can be filtered per engine component.  Call
setup_logging() once at application start-up; modules obtain their logger
through get_logger(__name__) and log snake_case event names with context.
"""

import logging
import sys

import structlog

SERVICE_NAME = "academy_scheduling"


def _add_service(service: str):
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(
    json_output: bool = False,
    log_level: str = "INFO",
    service: str = SERVICE_NAME,
) -> None:
    """Configure structlog processors and the output renderer.

    Args:
        json_output: If True, render JSON lines. If False, console format.
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service: Value stamped on every event as ``service``.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        _add_service(service),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and fastapi log through the stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to the emitting module, e.g. ``services.conflicts``."""
    return structlog.get_logger(module=name.removeprefix(f"{SERVICE_NAME}."))
