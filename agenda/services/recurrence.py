# agenda/services/recurrence.py
"""
Weekly recurrence expansion with an occurrence cap.

The whole series is validated and expanded in memory before anything is
written, so a rejected request leaves the store untouched.
"""
from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Any

from agenda.core.errors import RecurrenceCapExceeded, ValidationError
from agenda.core.logging import get_logger
from agenda.core.policy import LOCAL_TZ, RECURRENCE_CAP, SUNDAY, WORKING_WEEKDAYS
from agenda.schemas.appointment import RecurrenceRequest
from agenda.services.time_grid import to_local

logger = get_logger(__name__)

WEEKDAY_SHORT_LABELS = {1: "LUN", 2: "MAR", 3: "MER", 4: "GIO", 5: "VEN", 6: "SAB"}

def validate_request(request: RecurrenceRequest) -> None:
    if not request.weekdays:
        raise ValidationError("Seleziona almeno un giorno della settimana", field="weekdays")
    if SUNDAY in request.weekdays or not set(request.weekdays) <= set(WORKING_WEEKDAYS):
        raise ValidationError("I giorni validi sono da lunedì a sabato", field="weekdays")
    seed = to_local(request.start_at)
    if request.until < seed.date():
        raise ValidationError("La data di fine deve essere successiva all'inizio", field="until")
    if to_local(request.end_at) <= seed:
        raise ValidationError("L'orario di fine deve essere successivo all'inizio", field="end_at")

def _expand(request: RecurrenceRequest, limit: int) -> list[datetime]:
    """Occurrences in order; stops once `limit` is exceeded, so the result has at most limit + 1."""
    seed = to_local(request.start_at)
    wall = seed.time()
    out: list[datetime] = []
    day = seed.date()
    while day <= request.until:
        iso = day.isoweekday()
        if iso != SUNDAY and iso in request.weekdays:
            occurrence = datetime.combine(day, wall, tzinfo=LOCAL_TZ)
            if occurrence >= seed:
                out.append(occurrence)
                if len(out) > limit:
                    break
        if day == date.max:
            break
        day += timedelta(days=1)
    return out

def generate_occurrences(request: RecurrenceRequest) -> list[datetime]:
    """Start times of the series, ascending, at most RECURRENCE_CAP of them."""
    validate_request(request)
    occurrences = _expand(request, RECURRENCE_CAP)
    if len(occurrences) > RECURRENCE_CAP:
        logger.warning("recurrence_rejected", count=len(occurrences), cap=RECURRENCE_CAP)
        raise RecurrenceCapExceeded(len(occurrences), RECURRENCE_CAP)
    return occurrences

def build_series(request: RecurrenceRequest, base_fields: dict[str, Any]) -> list[dict[str, Any]]:
    """One row per occurrence, each with the seed duration and shared metadata."""
    duration = to_local(request.end_at) - to_local(request.start_at)
    rows = []
    for start in generate_occurrences(request):
        row = dict(base_fields)
        row["start_at"] = start
        row["end_at"] = start + duration
        rows.append(row)
    return rows

def describe_weekdays(weekdays) -> str:
    return ", ".join(WEEKDAY_SHORT_LABELS[d] for d in sorted(weekdays) if d in WEEKDAY_SHORT_LABELS)
