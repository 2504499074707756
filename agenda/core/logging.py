"""
structlog setup for the agenda service.

Every line carries the request's correlation id and endpoint while a request
is being served. Datetimes in event fields are rendered in clinic time so a
log line reads the same as the calendar.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import Request

from agenda.core.policy import LOCAL_TZ

CORRELATION_HEADER = "X-Correlation-ID"

_log_context: ContextVar[Dict[str, Any]] = ContextVar("agenda_log_context", default={})

# free-text fields that can carry a whole patient note or stack message
TRUNCATED_FIELDS = ("error", "detail", "calendar_note", "note")

class TruncatingProcessor:
    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def __call__(self, logger, method_name, event_dict):
        for key in TRUNCATED_FIELDS:
            value = event_dict.get(key)
            if value is not None:
                text = str(value)
                if len(text) > self.max_length:
                    event_dict[key] = text[:self.max_length] + "..."
        return event_dict

class ClinicTimeProcessor:
    """Aware datetimes become ISO strings in the clinic timezone."""

    def __call__(self, logger, method_name, event_dict):
        for key, value in event_dict.items():
            if isinstance(value, datetime) and value.tzinfo is not None:
                event_dict[key] = value.astimezone(LOCAL_TZ).isoformat()
        return event_dict

def _merge_request_context(logger, method_name, event_dict):
    for key, value in _log_context.get().items():
        event_dict.setdefault(key, value)
    return event_dict

def setup_logging(debug: bool = False, max_log_length: int = 200, level: Optional[str] = None) -> None:
    """Configure structlog over stdlib logging. JSON lines unless `debug`."""
    log_level = getattr(logging, (level or ("DEBUG" if debug else "INFO")).upper(), logging.INFO)

    processors = [
        structlog.stdlib.filter_by_level,
        _merge_request_context,
        TruncatingProcessor(max_length=max_log_length),
        ClinicTimeProcessor(),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=log_level, format="%(message)s")
    logging.getLogger().setLevel(log_level)

def get_logger(name: str = __name__):
    return structlog.get_logger(name)

def bind_request(correlation_id: str, endpoint: str, method: str) -> None:
    _log_context.set({"correlation_id": correlation_id, "endpoint": endpoint, "method": method})

def clear_context() -> None:
    _log_context.set({})

class LoggingMiddleware:
    """
    HTTP middleware: assigns a correlation id (or reuses the caller's),
    echoes it in the response, and logs failing or slow requests. With
    `log_requests`/`log_responses` every request is logged.
    """

    def __init__(self, log_requests: bool = False, log_responses: bool = False,
                 slow_threshold: float = 2.0):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.slow_threshold = slow_threshold
        self.logger = get_logger("agenda.http")

    async def __call__(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:8]
        bind_request(correlation_id, request.url.path, request.method)
        request.state.correlation_id = correlation_id

        if self.log_requests:
            self.logger.info("request_start", query=dict(request.query_params))

        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed = time.perf_counter() - started
            if elapsed > self.slow_threshold:
                self.logger.warning("slow_request", status_code=response.status_code, duration=round(elapsed, 3))
            elif self.log_responses or response.status_code >= 400:
                self.logger.info("request_complete", status_code=response.status_code, duration=round(elapsed, 3))
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        except Exception as e:
            self.logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration=round(time.perf_counter() - started, 3),
            )
            raise
        finally:
            clear_context()
