# agenda/schemas/appointment.py
from __future__ import annotations
from datetime import date as _Date, datetime as _Datetime
from decimal import Decimal
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from agenda.core.policy import DEFAULT_CLINIC_SITE
from agenda.services.time_grid import to_local

Location = Literal["studio", "domicile"]
TreatmentType = Literal["seduta", "macchinario"]
PriceType = Literal["invoiced", "cash"]

def _clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    return v or None

def _iso_weekdays(v):
    # range check only; Sunday and emptiness are reported by the recurrence generator
    if any(d < 1 or d > 7 for d in v):
        raise ValueError("weekdays must be ISO weekday numbers 1-7")
    return v

class AppointmentBase(BaseModel):
    patient_id: Optional[str] = None
    location: Location = "studio"
    clinic_site: Optional[str] = DEFAULT_CLINIC_SITE
    domicile_address: Optional[str] = None
    treatment_type: TreatmentType = "seduta"
    price_type: PriceType = "invoiced"
    calendar_note: Optional[str] = None

    @field_validator("clinic_site", "domicile_address", "calendar_note", "patient_id")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)

class AppointmentCreate(AppointmentBase):
    """Incoming payload for a single appointment (slot click or form)."""
    start_at: _Datetime
    end_at: _Datetime
    status: str = "booked"
    # Custom price as typed in the form ("12,50"); None means "use the default"
    amount: Optional[Union[Decimal, str]] = None

class RecurringAppointmentCreate(AppointmentCreate):
    """A seed appointment plus the weekly pattern to repeat it on."""
    weekdays: set[int]
    until: _Date

    @field_validator("weekdays")
    @classmethod
    def _known_weekdays(cls, v: set[int]) -> set[int]:
        return _iso_weekdays(v)

class AppointmentEdit(BaseModel):
    """Partial edit from the drawer; only fields actually sent are applied."""
    patient_id: Optional[str] = None
    start_at: Optional[_Datetime] = None
    end_at: Optional[_Datetime] = None
    status: Optional[str] = None
    location: Optional[Location] = None
    clinic_site: Optional[str] = None
    domicile_address: Optional[str] = None
    treatment_type: Optional[TreatmentType] = None
    price_type: Optional[PriceType] = None
    amount: Optional[Union[Decimal, str]] = None
    calendar_note: Optional[str] = None

    @field_validator("clinic_site", "domicile_address", "calendar_note")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return _clean_text(v)

class AppointmentOut(BaseModel):
    """Response model for reading an appointment."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: Optional[str] = None
    start_at: _Datetime
    end_at: _Datetime
    status: str
    is_paid: bool
    location: str
    clinic_site: Optional[str] = None
    domicile_address: Optional[str] = None
    treatment_type: str
    price_type: str
    amount: Optional[Decimal] = None
    calendar_note: Optional[str] = None
    reminder_sent_at: Optional[_Datetime] = None
    whatsapp_sent_at: Optional[_Datetime] = None
    created_at: Optional[_Datetime] = None

    # the store hands back UTC; clients read clinic wall time
    @field_serializer("start_at", "end_at", "reminder_sent_at", "whatsapp_sent_at", "created_at")
    def _as_local(self, v: Optional[_Datetime]) -> Optional[_Datetime]:
        return to_local(v) if v is not None else None

class RecurrenceRequest(BaseModel):
    """Seed interval plus weekly pattern. Expanded by the recurrence service."""
    start_at: _Datetime
    end_at: _Datetime
    weekdays: frozenset[int]
    until: _Date

    @field_validator("weekdays")
    @classmethod
    def _known_weekdays(cls, v: frozenset[int]) -> frozenset[int]:
        return _iso_weekdays(v)

class MoveRequest(BaseModel):
    """New start for an appointment; the end follows so the duration is kept."""
    start_at: _Datetime

class AppointmentView(AppointmentOut):
    """AppointmentOut plus what the grid needs to draw it."""
    effective_amount: Optional[Decimal] = None
    status_label: Optional[str] = None
    patient_name: Optional[str] = None
    top: Optional[int] = None
    height: Optional[int] = None
