# agenda/services/scheduler.py
"""
AgendaScheduler: the one owner of the visible appointment range.

Every mutation goes through here: validate, write once, then re-fetch the
range from the store so the in-memory view never drifts from it. Pure
computations (grid, recurrence, availability, pricing, status) live in their
own modules and are only orchestrated here.
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.config import settings as app_settings
from agenda.core.errors import (
    ErrorSeverity,
    NotFoundError,
    PersistenceError,
    ValidationError,
    log_error,
)
from agenda.core.logging import get_logger
from agenda.core.policy import DOMICILE_ADDRESS_MIN_LENGTH
from agenda.crud import appointment as crud
from agenda.crud.patient import get_patients
from agenda.crud.settings import get_practice_settings
from agenda.db.models.appointment import Appointment
from agenda.schemas.appointment import (
    AppointmentCreate,
    AppointmentEdit,
    RecurrenceRequest,
    RecurringAppointmentCreate,
)
from agenda.services import availability, recurrence
from agenda.services.drag import DragCommit, snap_start
from agenda.services.pricing import parse_amount, resolve_amount_for_create
from agenda.services.status import normalize_status, status_fields, toggled_status
from agenda.services.time_grid import DateLike, day_range, to_local, week_range

logger = get_logger(__name__)

def validate_interval(start: datetime, end: datetime) -> None:
    if to_local(end) <= to_local(start):
        raise ValidationError("L'orario di fine deve essere successivo all'inizio", field="end_at")

def validate_placement(location: str, clinic_site: Optional[str], domicile_address: Optional[str]) -> None:
    if location == "studio":
        if not (clinic_site or "").strip():
            raise ValidationError("Seleziona la sede dello studio", field="clinic_site")
    elif location == "domicile":
        if len((domicile_address or "").strip()) < DOMICILE_ADDRESS_MIN_LENGTH:
            raise ValidationError(
                "Inserisci un indirizzo domicilio valido (min 5 caratteri).",
                field="domicile_address",
            )
    else:
        raise ValidationError(f"Sede non valida: {location!r}", field="location")

class AgendaScheduler:
    def __init__(self, db: AsyncSession, owner_id: Optional[str] = None):
        self.db = db
        self.owner_id = owner_id or app_settings.PRACTICE_OWNER_ID
        self.appointments: list[Appointment] = []
        self.range: Optional[tuple[datetime, datetime]] = None
        self._settings: Optional[dict[str, Any]] = None
        self._settings_loaded = False

    # ---------- reads ----------

    async def load_range(self, start: datetime, end: datetime) -> list[Appointment]:
        self.range = (start, end)
        rows = await crud.list_appointments(
            self.db,
            start_utc=to_local(start).astimezone(timezone.utc),
            end_utc=to_local(end).astimezone(timezone.utc),
        )
        self.appointments = list(rows)
        return self.appointments

    async def load_week(self, d: DateLike) -> list[Appointment]:
        return await self.load_range(*week_range(d))

    async def load_day(self, d: DateLike) -> list[Appointment]:
        return await self.load_range(*day_range(d))

    async def reload(self) -> list[Appointment]:
        if self.range is None:
            return self.appointments
        return await self.load_range(*self.range)

    async def practice_settings(self) -> Optional[dict[str, Any]]:
        if not self._settings_loaded:
            self._settings = await get_practice_settings(self.db, self.owner_id)
            self._settings_loaded = True
        return self._settings

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        appt = await crud.get_appointment(self.db, appointment_id)
        if appt is None:
            log_error(NotFoundError("Appuntamento non trovato"), {"appointment_id": appointment_id})
        return appt

    async def upcoming(self, now: datetime, limit: int = 50) -> Sequence[Appointment]:
        """Appointments not yet over at `now`, soonest first."""
        return await crud.list_upcoming(self.db, now_utc=to_local(now).astimezone(timezone.utc), limit=limit)

    async def patient_names(self, appointments: Sequence[Appointment]) -> dict[str, str]:
        patients = await get_patients(self.db, (a.patient_id for a in appointments))
        return {pid: p.full_name for pid, p in patients.items()}

    def conflicts_for(self, start: datetime, end: datetime, exclude_id: Optional[str] = None) -> list[str]:
        return availability.find_conflicts(self.appointments, start, end, exclude_id=exclude_id)

    # ---------- writes ----------

    async def _fields_for_create(self, data: AppointmentCreate) -> dict[str, Any]:
        validate_interval(data.start_at, data.end_at)
        validate_placement(data.location, data.clinic_site, data.domicile_address)
        custom_amount = parse_amount(data.amount)
        amount = resolve_amount_for_create(
            custom_amount, data.treatment_type, data.price_type, await self.practice_settings(),
        )
        fields = {
            "patient_id": data.patient_id,
            "start_at": to_local(data.start_at),
            "end_at": to_local(data.end_at),
            "location": data.location,
            "clinic_site": data.clinic_site if data.location == "studio" else None,
            "domicile_address": data.domicile_address if data.location == "domicile" else None,
            "treatment_type": data.treatment_type,
            "price_type": data.price_type,
            "amount": amount,
            "calendar_note": data.calendar_note,
        }
        fields.update(status_fields(data.status))
        return fields

    async def create(self, data: AppointmentCreate) -> Appointment:
        fields = await self._fields_for_create(data)
        conflicts = self.conflicts_for(fields["start_at"], fields["end_at"])
        appt = await crud.create_appointment(self.db, fields=fields)
        logger.info(
            "appointment_created",
            appointment_id=appt.id,
            start=appt.start_at.isoformat(),
            conflicts=len(conflicts),
        )
        await self.reload()
        return appt

    async def generate_recurrence(self, data: RecurringAppointmentCreate) -> list[Appointment]:
        """Expand and insert a weekly series in one batch. Nothing is written if validation fails."""
        request = RecurrenceRequest(
            start_at=data.start_at,
            end_at=data.end_at,
            weekdays=frozenset(data.weekdays),
            until=data.until,
        )
        base = await self._fields_for_create(data)
        base.pop("start_at")
        base.pop("end_at")
        rows = recurrence.build_series(request, base)
        if not rows:
            raise ValidationError("Nessun appuntamento nell'intervallo selezionato", field="until")
        appts = await crud.create_appointments_batch(self.db, rows=rows)
        logger.info(
            "recurrence_created",
            count=len(appts),
            weekdays=recurrence.describe_weekdays(request.weekdays),
            until=data.until.isoformat(),
        )
        await self.reload()
        return appts

    async def save(self, appointment_id: str, edit: AppointmentEdit) -> Optional[Appointment]:
        """Apply the fields present in the edit. Persistence errors propagate without a reload."""
        appt = await self.get(appointment_id)
        if appt is None:
            return None

        sent = edit.model_dump(exclude_unset=True)
        changes: dict[str, Any] = {}

        start = sent.get("start_at") or appt.start_at
        end = sent.get("end_at") or appt.end_at
        if "start_at" in sent or "end_at" in sent:
            validate_interval(start, end)
            changes["start_at"] = to_local(start)
            changes["end_at"] = to_local(end)

        location = sent.get("location") or appt.location
        clinic_site = sent["clinic_site"] if "clinic_site" in sent else appt.clinic_site
        domicile_address = sent["domicile_address"] if "domicile_address" in sent else appt.domicile_address
        if {"location", "clinic_site", "domicile_address"} & sent.keys():
            validate_placement(location, clinic_site, domicile_address)
            changes["location"] = location
            changes["clinic_site"] = clinic_site if location == "studio" else None
            changes["domicile_address"] = domicile_address if location == "domicile" else None

        if sent.get("status") is not None:
            changes.update(status_fields(sent["status"]))
        for key in ("treatment_type", "price_type"):
            if sent.get(key) is not None:
                changes[key] = sent[key]
        if "amount" in sent:
            # blank clears the override; the default price applies again
            changes["amount"] = parse_amount(sent["amount"])
        if "calendar_note" in sent:
            changes["calendar_note"] = sent["calendar_note"]
        if "patient_id" in sent:
            changes["patient_id"] = sent["patient_id"]

        if not changes:
            return appt

        updated = await crud.update_appointment(self.db, appointment_id, changes=changes)
        if updated is None:
            log_error(NotFoundError("Appuntamento non trovato"), {"appointment_id": appointment_id})
            return None
        logger.info("appointment_saved", appointment_id=appointment_id, fields=sorted(changes))
        await self.reload()
        return updated

    async def _write_then_reload(self, operation: str, appointment_id: str,
                                 changes: dict[str, Any]) -> Optional[Appointment]:
        """Single write; on failure drop local edits, reload, and re-raise."""
        try:
            updated = await crud.update_appointment(self.db, appointment_id, changes=changes)
        except PersistenceError as e:
            log_error(e, {"operation": operation, "appointment_id": appointment_id}, ErrorSeverity.MEDIUM)
            await self.db.rollback()
            await self.reload()
            raise
        await self.reload()
        return updated

    async def toggle_done(self, appointment_id: str) -> Optional[Appointment]:
        appt = await self.get(appointment_id)
        if appt is None:
            return None
        fields = status_fields(toggled_status(appt.status))
        updated = await self._write_then_reload("toggle_done", appointment_id, fields)
        logger.info("appointment_toggled", appointment_id=appointment_id, status=fields["status"])
        return updated

    async def move_appointment(self, appointment_id: str, new_start: datetime) -> Optional[Appointment]:
        """
        Reschedule keeping the duration. The new start snaps to the drag
        step and stays inside the visible window, as a drop on the grid does.

        Optimistic: the in-memory row moves first so the grid shows the drop
        at once; the authoritative range is then re-fetched whether the write
        succeeded or not.
        """
        appt = next((a for a in self.appointments if a.id == appointment_id), None)
        if appt is None:
            appt = await self.get(appointment_id)
            if appt is None:
                return None

        duration = appt.end_at - appt.start_at
        start = snap_start(new_start)
        end = start + duration
        previous = appt.start_at

        appt.start_at = start
        appt.end_at = end

        updated = await self._write_then_reload(
            "move", appointment_id, {"start_at": start, "end_at": end},
        )
        logger.info(
            "appointment_moved",
            appointment_id=appointment_id,
            previous=to_local(previous).isoformat(),
            start=start.isoformat(),
        )
        return updated

    async def commit_drag(self, commit: Optional[DragCommit]) -> Optional[Appointment]:
        if commit is None:
            return None
        return await self.move_appointment(commit.appointment_id, commit.start)

    async def delete(self, appointment_id: str, confirm: bool = False) -> bool:
        if not confirm:
            raise ValidationError("Conferma l'eliminazione dell'appuntamento", field="confirm")
        deleted = await crud.delete_appointment(self.db, appointment_id)
        if not deleted:
            log_error(NotFoundError("Appuntamento non trovato"), {"appointment_id": appointment_id})
            return False
        logger.info("appointment_deleted", appointment_id=appointment_id)
        await self.reload()
        return True

    async def mark_whatsapp_sent(self, appointment_id: str,
                                 now: Optional[datetime] = None) -> Optional[Appointment]:
        sent_at = to_local(now) if now else datetime.now(timezone.utc)
        updated = await crud.update_appointment(
            self.db, appointment_id, changes={"whatsapp_sent_at": sent_at},
        )
        if updated is None:
            log_error(NotFoundError("Appuntamento non trovato"), {"appointment_id": appointment_id})
            return None
        logger.info("whatsapp_marked", appointment_id=appointment_id)
        await self.reload()
        return updated

    async def mark_reminder_sent(self, appointment_id: str,
                                 now: Optional[datetime] = None) -> Optional[Appointment]:
        sent_at = to_local(now) if now else datetime.now(timezone.utc)
        updated = await crud.update_appointment(
            self.db, appointment_id, changes={"reminder_sent_at": sent_at},
        )
        if updated is None:
            log_error(NotFoundError("Appuntamento non trovato"), {"appointment_id": appointment_id})
            return None
        logger.info("reminder_marked", appointment_id=appointment_id)
        await self.reload()
        return updated

    def day_view(self, day: date) -> list[Appointment]:
        return availability.same_day(self.appointments, day)
