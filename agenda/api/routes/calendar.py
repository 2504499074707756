# agenda/api/routes/calendar.py

from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from agenda.api.deps import get_scheduler
from agenda.core.policy import CELL_LENGTH_MINUTES, LOCAL_TZ, SLOT_LENGTH_MINUTES
from agenda.crud.patient import get_patient
from agenda.schemas.calendar import AppointmentFilters, AvailabilitySlot, OccupancyForecast
from agenda.services import availability, exports, google_calendar, whatsapp
from agenda.services.filters import apply_filters, calendar_stats
from agenda.services.pricing import effective_amount
from agenda.services.scheduler import AgendaScheduler
from agenda.services.status import status_label
from agenda.services.time_grid import day_range, position_of, time_select_slots, to_local, week_days, week_range

router = APIRouter(prefix="/calendar", tags=["calendar"])

def _today() -> date:
    return datetime.now(LOCAL_TZ).date()

@router.get("/week")
async def week_grid(
    scheduler: AgendaScheduler = Depends(get_scheduler),
    day: Optional[date] = Query(None, description="Any day of the wanted week"),
    status: str = "all",
    location: Literal["all", "studio", "domicile"] = "all",
    treatment_type: Literal["all", "seduta", "macchinario"] = "all",
    price_type: Literal["all", "invoiced", "cash"] = "all",
    min_amount: Optional[str] = None,
    max_amount: Optional[str] = None,
):
    """Week grid: Mon-Sat columns, positioned appointments, stats."""
    anchor = day or _today()
    rows = await scheduler.load_week(anchor)
    settings = await scheduler.practice_settings()
    names = await scheduler.patient_names(rows)
    filters = AppointmentFilters(
        status=status,
        location=location,
        treatment_type=treatment_type,
        price_type=price_type,
        min_amount=_bound(min_amount),
        max_amount=_bound(max_amount),
    )
    visible = apply_filters(rows, filters, settings)

    events = []
    for a in visible:
        pos = position_of(a.start_at, a.end_at)
        events.append({
            "id": a.id,
            "patient_id": a.patient_id,
            "patient_name": names.get(a.patient_id or "", ""),
            "start_at": to_local(a.start_at),
            "end_at": to_local(a.end_at),
            "status": a.status,
            "status_label": status_label(a.status),
            "location": a.location,
            "treatment_type": a.treatment_type,
            "price_type": a.price_type,
            "amount": effective_amount(a, settings),
            "top": pos.top,
            "height": pos.height,
            "conflicts": availability.find_conflicts(rows, a.start_at, a.end_at, exclude_id=a.id),
        })

    start, end = week_range(anchor)
    return {
        "start": start,
        "end": end,
        "days": week_days(anchor),
        "time_slots": time_select_slots(),
        "appointments": events,
        "stats": calendar_stats(rows, settings),
    }

def _bound(raw: Optional[str]):
    # unparsable bounds are ignored, like an empty filter box
    if raw is None or not raw.strip():
        return None
    try:
        return Decimal(raw.strip().replace(",", "."))
    except InvalidOperation:
        return None

@router.get("/slots", response_model=List[AvailabilitySlot])
async def slots(
    scheduler: AgendaScheduler = Depends(get_scheduler),
    day: Optional[date] = None,
    slot_minutes: int = Query(SLOT_LENGTH_MINUTES, ge=CELL_LENGTH_MINUTES, le=SLOT_LENGTH_MINUTES),
    include_occupied: bool = False,
):
    d = day or _today()
    rows = await scheduler.load_day(d)
    if include_occupied:
        return availability.slot_grid(d, rows, slot_minutes=slot_minutes)
    return availability.available_slots(d, rows, slot_minutes=slot_minutes)

@router.get("/forecast", response_model=OccupancyForecast)
async def forecast(scheduler: AgendaScheduler = Depends(get_scheduler), day: Optional[date] = None):
    d = day or _today()
    rows = await scheduler.load_day(d)
    return availability.occupancy_forecast(d, rows)

@router.get("/suggest")
async def suggest(scheduler: AgendaScheduler = Depends(get_scheduler), day: Optional[date] = None):
    d = day or _today()
    rows = await scheduler.load_day(d)
    return {"start": availability.suggest_slot(d, rows, datetime.now(LOCAL_TZ))}

@router.get("/export.csv")
async def export_csv(
    scheduler: AgendaScheduler = Depends(get_scheduler),
    start: Optional[date] = None,
    end: Optional[date] = None,
):
    """CSV of [start, end) days; defaults to the current week."""
    if start is None:
        range_start, range_end = week_range(_today())
    else:
        range_start = day_range(start)[0]
        range_end = day_range(end)[0] if end else week_range(start)[1]
    rows = await scheduler.load_range(range_start, range_end)
    names = await scheduler.patient_names(rows)
    body = exports.export_csv(rows, names, await scheduler.practice_settings())
    filename = exports.csv_filename(_today())
    return Response(
        content=body.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/{appointment_id}/google-link")
async def google_link(appointment_id: str, scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.get(appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appuntamento non trovato")
    names = await scheduler.patient_names([appt])
    url = google_calendar.quick_add_url(
        appt, names.get(appt.patient_id or "", ""), await scheduler.practice_settings(),
    )
    return {"url": url}

@router.get("/{appointment_id}/whatsapp-link")
async def whatsapp_link(
    appointment_id: str,
    scheduler: AgendaScheduler = Depends(get_scheduler),
    kind: Literal["confirmation", "reminder"] = "reminder",
):
    appt = await scheduler.get(appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appuntamento non trovato")
    patient = await get_patient(scheduler.db, appt.patient_id)
    return {"url": whatsapp.build_whatsapp_link(appt, patient, kind=kind)}
