"""
Structured Logging
==================

JSON logs for the SLA engine, one object per line on stdout.

Every record carries the service name, environment, a UTC timestamp and,
when bound, the correlation id of the report request that produced it.

Usage:
    from slaengine.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("SLA clock ready", extra={"timezone": "UTC"})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional, Tuple, Union

from pythonjsonlogger import jsonlogger

REDACTED = "***REDACTED***"
_SENSITIVE_MARKERS = ("password", "secret", "api_key", "token")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter stamping service context onto every record.

    Values of keys that look like credentials are replaced before output.
    """

    def __init__(
        self,
        *args: Any,
        service: str = "sla-engine",
        environment: str = "unknown",
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault(
            "timestamp",
            datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        )
        log_record["level"] = record.levelname
        log_record["service"] = self.service
        log_record.setdefault("environment", self.environment)

        for key, value in log_record.items():
            if isinstance(value, str) and _is_sensitive(key):
                log_record[key] = REDACTED


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    service: str = "sla-engine",
) -> None:
    """
    Install the JSON handler on the root logger.

    Safe to call more than once; earlier handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(
        "%(name)s %(levelname)s %(message)s",
        service=service,
        environment=environment,
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """Adapter that merges bound context into each call's ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_context_logger(name: str, correlation_id: Optional[str] = None, **context: Any) -> ContextLogger:
    """
    Logger bound to a report request.

    Args:
        name: Logger name
        correlation_id: Request id echoed on every record
        **context: Further fields to attach (report name, window, ...)
    """
    if correlation_id:
        context["correlation_id"] = correlation_id
    return ContextLogger(get_logger(name), context)


@contextmanager
def log_latency(logger: Union[logging.Logger, logging.LoggerAdapter], operation: str, **extra_context: Any):
    """
    Log how long the wrapped block took, in milliseconds.

    Failures are logged at ERROR with the same fields and re-raised.
    """
    start = time.perf_counter()
    failed = False
    try:
        yield
    except Exception:
        failed = True
        raise
    finally:
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        fields = {"operation": operation, "latency_ms": latency_ms, **extra_context}
        if failed:
            logger.error(f"{operation} failed", extra=fields)
        else:
            logger.info(f"{operation} completed", extra=fields)
