# agenda/services/google_calendar.py
"""
Google Calendar "quick add" links. No API credentials: the practitioner opens
the prefilled template and saves it in their own calendar.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from agenda.services.pricing import effective_amount, format_euro
from agenda.services.status import status_label
from agenda.services.time_grid import to_local

CALENDAR_TEMPLATE_URL = "https://calendar.google.com/calendar/render?action=TEMPLATE"
CALENDAR_TZ = "Europe/Rome"

TREATMENT_LABELS = {"seduta": "Seduta", "macchinario": "Macchinario"}

def google_dates(start: datetime, end: datetime) -> str:
    """`YYYYMMDDTHHMMSSZ/YYYYMMDDTHHMMSSZ` in UTC."""
    fmt = "%Y%m%dT%H%M%SZ"
    return f"{_utc(start).strftime(fmt)}/{_utc(end).strftime(fmt)}"

def _utc(ts: datetime) -> datetime:
    return to_local(ts).astimezone(timezone.utc)

def event_summary(appointment, patient_name: str) -> str:
    name = f"🏠 {patient_name}" if appointment.location == "domicile" else patient_name
    return f"{name} - {status_label(appointment.status)}"

def event_details(appointment, settings: Optional[Mapping[str, Any]]) -> str:
    treatment = TREATMENT_LABELS.get(appointment.treatment_type, appointment.treatment_type)
    price = format_euro(effective_amount(appointment, settings))
    note = appointment.calendar_note or "Nessuna nota"
    return f"Trattamento: {treatment}\nPrezzo: {price}\nNote: {note}"

def event_location(appointment) -> str:
    if appointment.location == "studio":
        return appointment.clinic_site or ""
    return appointment.domicile_address or ""

def build_calendar_event(appointment, patient_name: str,
                         settings: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
    """Event body in the Calendar API shape, also used to build the link."""
    return {
        "summary": event_summary(appointment, patient_name),
        "location": event_location(appointment),
        "description": event_details(appointment, settings),
        "start": {"dateTime": _utc(appointment.start_at).isoformat(), "timeZone": CALENDAR_TZ},
        "end": {"dateTime": _utc(appointment.end_at).isoformat(), "timeZone": CALENDAR_TZ},
    }

def quick_add_url(appointment, patient_name: str,
                  settings: Optional[Mapping[str, Any]] = None) -> str:
    event = build_calendar_event(appointment, patient_name, settings)
    params = urlencode({
        "text": event["summary"],
        "details": event["description"],
        "location": event["location"],
        "dates": google_dates(appointment.start_at, appointment.end_at),
    })
    return f"{CALENDAR_TEMPLATE_URL}&{params}"
