# agenda/services/time_grid.py
"""
Calendar arithmetic for the day/week grid.

All results are timezone-aware in the clinic timezone. A naive datetime
passed in is read as local wall time, an aware one is converted.
"""
from __future__ import annotations
import calendar
from datetime import date, datetime, time, timedelta
from typing import Literal, Union

from agenda.core.policy import (
    DAYS_PER_WEEK_VIEW,
    LOCAL_TZ,
    MIN_EVENT_HEIGHT,
    PIXELS_PER_MINUTE,
    SLOT_STEP_MINUTES,
    VISIBLE_END_HOUR,
    VISIBLE_START_HOUR,
)
from agenda.schemas.calendar import GridPosition

Period = Literal["day", "week", "month"]
DateLike = Union[date, datetime]

WEEKDAY_NAMES = ["Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato", "Domenica"]

def to_local(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=LOCAL_TZ)
    return ts.astimezone(LOCAL_TZ)

def local_date(d: DateLike) -> date:
    if isinstance(d, datetime):
        return to_local(d).date()
    return d

def at_local(d: DateLike, hour: int = 0, minute: int = 0) -> datetime:
    """Wall-clock time on the given local day."""
    return datetime.combine(local_date(d), time(hour, minute), tzinfo=LOCAL_TZ)

def minutes_between(start: datetime, end: datetime) -> int:
    return int((to_local(end) - to_local(start)).total_seconds() // 60)

def position_of(start: datetime, end: datetime,
                window_start_hour: int = VISIBLE_START_HOUR) -> GridPosition:
    """Vertical offset and height (in grid pixels) of an interval."""
    s = to_local(start)
    top = max(0, (s.hour - window_start_hour) * 60 + s.minute)
    height = max(MIN_EVENT_HEIGHT, minutes_between(start, end))
    return GridPosition(
        top=int(top * PIXELS_PER_MINUTE),
        height=int(height * PIXELS_PER_MINUTE),
    )

def bucket_index_of(ts: datetime, period: Period) -> int:
    local = to_local(ts)
    if period == "day":
        return local.hour
    if period == "week":
        return local.weekday()  # Monday = 0
    if period == "month":
        return local.day - 1
    raise ValueError(f"unknown period: {period!r}")

def bucket_labels(period: Period, base: DateLike | None = None) -> list[str]:
    if period == "day":
        return [f"{h:02d}:00" for h in range(24)]
    if period == "week":
        return list(WEEKDAY_NAMES)
    if period == "month":
        if base is None:
            raise ValueError("month labels need a base date")
        d = local_date(base)
        days = calendar.monthrange(d.year, d.month)[1]
        return [str(i) for i in range(1, days + 1)]
    raise ValueError(f"unknown period: {period!r}")

def start_of_iso_week(d: DateLike) -> datetime:
    """Monday 00:00 of the week containing d."""
    day = local_date(d)
    return at_local(day - timedelta(days=day.weekday()))

def week_days(d: DateLike) -> list[date]:
    """Monday..Saturday of d's week. Sunday is not a working day."""
    monday = start_of_iso_week(d).date()
    return [monday + timedelta(days=i) for i in range(DAYS_PER_WEEK_VIEW)]

def week_range(d: DateLike) -> tuple[datetime, datetime]:
    start = start_of_iso_week(d)
    return start, at_local(start.date() + timedelta(days=7))

def day_range(d: DateLike) -> tuple[datetime, datetime]:
    day = local_date(d)
    return at_local(day), at_local(day + timedelta(days=1))

def time_select_slots() -> list[str]:
    out = []
    for hour in range(VISIBLE_START_HOUR, VISIBLE_END_HOUR):
        for minute in range(0, 60, SLOT_STEP_MINUTES):
            out.append(f"{hour:02d}:{minute:02d}")
    return out

def fmt_time(ts: datetime) -> str:
    return to_local(ts).strftime("%H:%M")

def fmt_dmy(ts: DateLike) -> str:
    return local_date(ts).strftime("%d/%m/%Y")
