"""
Error taxonomy for the scheduling core plus severity-aware error logging.
"""
import hashlib
from enum import Enum
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"           # validation errors, missing rows
    MEDIUM = "medium"     # recoverable persistence hiccups
    HIGH = "high"         # store unavailable, data inconsistency
    CRITICAL = "critical" # data loss

class AgendaError(Exception):
    """Base class for every error the scheduling core raises on purpose."""

    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

class ValidationError(AgendaError):
    """Input rejected before anything reaches the store."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        super().__init__(message, **context)
        self.field = field

class RecurrenceCapExceeded(ValidationError):
    """A recurrence would expand past the occurrence cap."""

    def __init__(self, count: int, cap: int):
        super().__init__(
            f"Ricorrenza troppo ampia: oltre {cap} appuntamenti. "
            "Riduci l'intervallo o i giorni selezionati.",
            field="weekdays",
            count=count,
            cap=cap,
        )
        self.count = count
        self.cap = cap

class PersistenceError(AgendaError):
    """The store rejected or failed a read or write."""

    status_code = 503

class NotFoundError(AgendaError):
    status_code = 404

SEVERITY_OVERRIDE = {
    "ValidationError": ErrorSeverity.LOW,
    "RecurrenceCapExceeded": ErrorSeverity.LOW,
    "NotFoundError": ErrorSeverity.LOW,
    "PersistenceError": ErrorSeverity.HIGH,
    "OperationalError": ErrorSeverity.HIGH,
    "IntegrityError": ErrorSeverity.MEDIUM,
}

def determine_severity(error: Exception) -> ErrorSeverity:
    """Pick a severity from the error type, falling back on the message."""
    error_type = type(error).__name__
    if error_type in SEVERITY_OVERRIDE:
        return SEVERITY_OVERRIDE[error_type]
    if isinstance(error, AgendaError) and error.status_code < 500:
        return ErrorSeverity.LOW
    message = str(error).lower()
    if "timeout" in message or "connection" in message:
        return ErrorSeverity.HIGH
    return ErrorSeverity.MEDIUM

def error_fingerprint(error: Exception, context: Optional[Dict[str, Any]] = None) -> str:
    """Short stable hash used to correlate repeats of the same failure."""
    context = context or {}
    content = f"{type(error).__name__}:{str(error)[:100]}:{context.get('operation', '')}"
    return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()[:8]

def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> str:
    """Log an error with its severity and fingerprint. Returns the fingerprint."""
    context = dict(context or {})
    if severity is None:
        severity = determine_severity(error)
    if isinstance(error, AgendaError):
        for key, value in error.context.items():
            context.setdefault(key, value)

    fingerprint = error_fingerprint(error, context)
    log = logger.warning if severity == ErrorSeverity.LOW else logger.error
    log(
        "agenda_error",
        error_hash=fingerprint,
        error_type=type(error).__name__,
        error=str(error),
        severity=severity.value,
        **context,
    )
    return fingerprint
