# agenda/schemas/calendar.py
from __future__ import annotations
from datetime import datetime as _Datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field

class GridPosition(BaseModel):
    top: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

class AvailabilitySlot(BaseModel):
    start: _Datetime
    end: _Datetime
    label: str
    occupied: bool = False

class OccupancyForecast(BaseModel):
    total_events: int
    occupied_minutes: int
    available_minutes: int
    occupancy_rate: float
    available_hours: int
    recommendation: str

class AppointmentFilters(BaseModel):
    """Calendar filters; "all" (or None) disables a filter."""
    status: str = "all"
    location: Literal["all", "studio", "domicile"] = "all"
    treatment_type: Literal["all", "seduta", "macchinario"] = "all"
    price_type: Literal["all", "invoiced", "cash"] = "all"
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

class CalendarStats(BaseModel):
    total: int
    done: int
    confirmed: int
    booked: int
    revenue: Decimal
    expected_revenue: Decimal
