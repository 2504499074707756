# agenda/api/routes/appointments.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from agenda.api.deps import get_scheduler
from agenda.core.policy import LOCAL_TZ
from agenda.schemas.appointment import (
    AppointmentCreate,
    AppointmentEdit,
    AppointmentOut,
    AppointmentView,
    MoveRequest,
    RecurringAppointmentCreate,
)
from agenda.services.pricing import effective_amount
from agenda.services.scheduler import AgendaScheduler
from agenda.services.status import status_label
from agenda.services.time_grid import position_of, week_range

router = APIRouter(prefix="/appointments", tags=["appointments"])

def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Appuntamento non trovato")

@router.get("", response_model=List[AppointmentView])
async def list_range(
    scheduler: AgendaScheduler = Depends(get_scheduler),
    start: Optional[datetime] = Query(None, description="Range start (local/ISO); default this week"),
    end: Optional[datetime] = Query(None, description="Range end, exclusive"),
):
    if start is None or end is None:
        week_start, week_end = week_range(start or datetime.now(LOCAL_TZ))
        start = start or week_start
        end = end or week_end
    rows = await scheduler.load_range(start, end)
    names = await scheduler.patient_names(rows)
    settings = await scheduler.practice_settings()
    return [
        AppointmentView.model_validate(a, from_attributes=True).model_copy(update={
            "effective_amount": effective_amount(a, settings),
            "status_label": status_label(a.status),
            "patient_name": names.get(a.patient_id or ""),
            "top": position_of(a.start_at, a.end_at).top,
            "height": position_of(a.start_at, a.end_at).height,
        })
        for a in rows
    ]

@router.get("/upcoming", response_model=List[AppointmentOut])
async def upcoming(
    scheduler: AgendaScheduler = Depends(get_scheduler),
    limit: int = Query(50, ge=1, le=500),
):
    return await scheduler.upcoming(datetime.now(timezone.utc), limit=limit)

@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_one(appointment_id: str, scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.get(appointment_id)
    if appt is None:
        raise _not_found()
    return appt

@router.post("", response_model=AppointmentOut, status_code=201)
async def create(payload: AppointmentCreate, scheduler: AgendaScheduler = Depends(get_scheduler)):
    return await scheduler.create(payload)

@router.post("/recurring", response_model=List[AppointmentOut], status_code=201)
async def create_recurring(payload: RecurringAppointmentCreate,
                           scheduler: AgendaScheduler = Depends(get_scheduler)):
    return await scheduler.generate_recurrence(payload)

@router.patch("/{appointment_id}", response_model=AppointmentOut)
async def edit(appointment_id: str, payload: AppointmentEdit,
               scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.save(appointment_id, payload)
    if appt is None:
        raise _not_found()
    return appt

@router.post("/{appointment_id}/toggle", response_model=AppointmentOut)
async def toggle(appointment_id: str, scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.toggle_done(appointment_id)
    if appt is None:
        raise _not_found()
    return appt

@router.post("/{appointment_id}/move", response_model=AppointmentOut)
async def move(appointment_id: str, payload: MoveRequest,
               scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.move_appointment(appointment_id, payload.start_at)
    if appt is None:
        raise _not_found()
    return appt

@router.post("/{appointment_id}/whatsapp-sent", response_model=AppointmentOut)
async def whatsapp_sent(appointment_id: str, scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.mark_whatsapp_sent(appointment_id)
    if appt is None:
        raise _not_found()
    return appt

@router.delete("/{appointment_id}", status_code=204)
async def delete(
    appointment_id: str,
    scheduler: AgendaScheduler = Depends(get_scheduler),
    confirm: bool = Query(False, description="Must be true: deletion is permanent"),
):
    if not await scheduler.delete(appointment_id, confirm=confirm):
        raise _not_found()
    return Response(status_code=204)

@router.post("/{appointment_id}/reminder-sent", response_model=AppointmentOut)
async def reminder_sent(appointment_id: str, scheduler: AgendaScheduler = Depends(get_scheduler)):
    appt = await scheduler.mark_reminder_sent(appointment_id)
    if appt is None:
        raise _not_found()
    return appt
