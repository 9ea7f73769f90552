"""
Structured Logging
==================

JSON logs on stdout, one object per line.

Every line carries a timestamp, the service name and the environment; lines
logged inside a request also carry its correlation id. Escalation code adds
ticket context through ``extra``:

    from warning_tracker.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Ticket escalated", extra={"ticket_number": "TKT-1234"})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

REDACTED = "***REDACTED***"
SENSITIVE_KEY_PARTS = ("password", "token", "api_key", "secret")

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "apscheduler", "httpx", "httpcore", "watchdog")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding tracker context to every record.

    Adds:
    - timestamp of the record in ISO format (UTC)
    - service and environment names
    - correlation_id when available
    """

    def __init__(
        self,
        *args: Any,
        service: str = "ticket-warning-tracker",
        environment: str = "unknown",
        **kwargs: Any
    ):
        self.service = service
        self.environment = environment
        super().__init__(*args, **kwargs)

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault(
            "timestamp",
            datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        )
        log_record["service"] = self.service
        log_record["environment"] = getattr(record, "environment", self.environment)

        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id

        for key, value in list(log_record.items()):
            if isinstance(value, str) and any(part in key.lower() for part in SENSITIVE_KEY_PARTS):
                log_record[key] = REDACTED


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    service: str = "ticket-warning-tracker",
) -> None:
    """
    Route all logging to stdout as JSON.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name stamped on every line
        service: Service name stamped on every line
    """
    log_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(CustomJsonFormatter(
        fmt="%(name)s %(levelname)s %(message)s",
        service=service,
        environment=environment,
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Log how long the wrapped block took, even when it raises.

    Usage:
        with log_latency(logger, "escalation_check", trigger="periodic"):
            await service.run_escalation_check()
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                **extra_context,
            },
        )
