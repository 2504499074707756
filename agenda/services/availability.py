# agenda/services/availability.py
"""
Free/occupied time for a single day of the visible window.

Candidates start on every half hour of the window and last `slot_minutes`
(one hour for the free-slot list, half an hour for the click/drop cells).
Only appointments starting on the same local day are considered, and every
status counts as occupying its interval.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Iterable, Optional, Protocol, Sequence

from agenda.core.policy import (
    OCCUPANCY_HIGH_THRESHOLD,
    OCCUPANCY_MEDIUM_THRESHOLD,
    RECOMMENDATION_HIGH,
    RECOMMENDATION_LOW,
    RECOMMENDATION_MEDIUM,
    SLOT_LENGTH_MINUTES,
    SLOT_STEP_MINUTES,
    SUGGESTION_LEAD_MINUTES,
    VISIBLE_END_HOUR,
    VISIBLE_START_HOUR,
    VISIBLE_WINDOW_MINUTES,
)
from agenda.schemas.calendar import AvailabilitySlot, OccupancyForecast
from agenda.services.time_grid import DateLike, at_local, local_date, minutes_between, to_local

class Interval(Protocol):
    start_at: datetime
    end_at: datetime

def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: intervals that only touch do not overlap."""
    return to_local(a_start) < to_local(b_end) and to_local(a_end) > to_local(b_start)

def same_day(appointments: Iterable[Interval], day: DateLike) -> list[Interval]:
    d = local_date(day)
    return [a for a in appointments if to_local(a.start_at).date() == d]

def slot_grid(day: DateLike, appointments: Iterable[Interval],
              slot_minutes: int = SLOT_LENGTH_MINUTES) -> list[AvailabilitySlot]:
    todays = same_day(appointments, day)
    slots = []
    for hour in range(VISIBLE_START_HOUR, VISIBLE_END_HOUR):
        for minute in range(0, 60, SLOT_STEP_MINUTES):
            start = at_local(day, hour, minute)
            end = start + timedelta(minutes=slot_minutes)
            occupied = any(overlaps(start, end, a.start_at, a.end_at) for a in todays)
            slots.append(AvailabilitySlot(
                start=start,
                end=end,
                label=f"{hour:02d}:{minute:02d}",
                occupied=occupied,
            ))
    return slots

def available_slots(day: DateLike, appointments: Iterable[Interval],
                    slot_minutes: int = SLOT_LENGTH_MINUTES) -> list[AvailabilitySlot]:
    return [s for s in slot_grid(day, appointments, slot_minutes) if not s.occupied]

def recommendation_for(rate: float) -> str:
    if rate > OCCUPANCY_HIGH_THRESHOLD:
        return RECOMMENDATION_HIGH
    if rate > OCCUPANCY_MEDIUM_THRESHOLD:
        return RECOMMENDATION_MEDIUM
    return RECOMMENDATION_LOW

def occupancy_forecast(day: DateLike, appointments: Iterable[Interval]) -> OccupancyForecast:
    # overlapping appointments are summed, not merged
    todays = same_day(appointments, day)
    occupied = sum(minutes_between(a.start_at, a.end_at) for a in todays)
    available = max(0, VISIBLE_WINDOW_MINUTES - occupied)
    rate = occupied / VISIBLE_WINDOW_MINUTES * 100
    return OccupancyForecast(
        total_events=len(todays),
        occupied_minutes=occupied,
        available_minutes=available,
        occupancy_rate=round(rate, 2),
        available_hours=available // 60,
        recommendation=recommendation_for(rate),
    )

def suggest_slot(day: DateLike, appointments: Iterable[Interval], now: datetime) -> datetime:
    """Start for a quick-create: first free slot that isn't about to begin."""
    free = available_slots(day, appointments)
    earliest = to_local(now) + timedelta(minutes=SUGGESTION_LEAD_MINUTES)
    for slot in free:
        if slot.start >= earliest:
            return slot.start
    if free:
        return free[0].start
    return at_local(day, VISIBLE_START_HOUR)

def find_conflicts(appointments: Sequence[Interval], start: datetime, end: datetime,
                   exclude_id: Optional[str] = None) -> list[str]:
    """Ids overlapping [start, end). Informational: double booking is allowed."""
    return [
        a.id for a in appointments
        if getattr(a, "id", None) != exclude_id and overlaps(start, end, a.start_at, a.end_at)
    ]
