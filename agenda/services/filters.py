# agenda/services/filters.py
from __future__ import annotations
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from agenda.schemas.calendar import AppointmentFilters, CalendarStats
from agenda.services.pricing import effective_amount

def apply_filters(appointments: Iterable[Any], filters: AppointmentFilters,
                  settings: Optional[Mapping[str, Any]] = None) -> list[Any]:
    """Calendar filters. Amount bounds compare the effective price."""
    result = list(appointments)
    if filters.status != "all":
        result = [a for a in result if a.status == filters.status]
    if filters.location != "all":
        result = [a for a in result if a.location == filters.location]
    if filters.treatment_type != "all":
        result = [a for a in result if a.treatment_type == filters.treatment_type]
    if filters.price_type != "all":
        result = [a for a in result if a.price_type == filters.price_type]
    if filters.min_amount is not None:
        result = [a for a in result if effective_amount(a, settings) >= filters.min_amount]
    if filters.max_amount is not None:
        result = [a for a in result if effective_amount(a, settings) <= filters.max_amount]
    return result

def calendar_stats(appointments: Iterable[Any],
                   settings: Optional[Mapping[str, Any]] = None) -> CalendarStats:
    """Counters for the sidebar. Revenue counts done visits; expected skips cancelled ones."""
    rows = list(appointments)
    revenue = sum((effective_amount(a, settings) for a in rows if a.status == "done"), Decimal(0))
    expected = sum((effective_amount(a, settings) for a in rows if a.status != "cancelled"), Decimal(0))
    return CalendarStats(
        total=len(rows),
        done=sum(1 for a in rows if a.status == "done"),
        confirmed=sum(1 for a in rows if a.status == "confirmed"),
        booked=sum(1 for a in rows if a.status == "booked"),
        revenue=revenue,
        expected_revenue=expected,
    )
