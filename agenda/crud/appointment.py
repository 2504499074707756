# agenda/crud/appointment.py

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from agenda.core.errors import PersistenceError
from agenda.core.logging import get_logger
from agenda.db.models.appointment import Appointment

logger = get_logger(__name__)

# Columns a caller may write; id and created_at belong to storage
WRITABLE_COLS = frozenset({
    "patient_id", "start_at", "end_at", "status", "is_paid", "location",
    "clinic_site", "domicile_address", "treatment_type", "price_type",
    "amount", "calendar_note", "reminder_sent_at", "whatsapp_sent_at",
})

def _clean(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_COLS
    if unknown:
        raise ValueError(f"Unknown appointment fields: {sorted(unknown)}")
    return dict(fields)

async def _commit(db: AsyncSession, operation: str, **context: Any) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("appointment_write_failed", operation=operation, error=str(e), **context)
        raise PersistenceError(f"Impossibile salvare l'appuntamento ({operation})", operation=operation) from e

async def list_appointments(
    db: AsyncSession,
    *,
    start_utc: Optional[datetime] = None,
    end_utc: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> Sequence[Appointment]:
    """Appointments starting in [start_utc, end_utc), ascending by start."""
    q = sa.select(Appointment)
    if start_utc is not None:
        q = q.where(Appointment.start_at >= start_utc)
    if end_utc is not None:
        q = q.where(Appointment.start_at < end_utc)
    # authoritative reload: overwrite whatever the session holds for these rows
    q = q.order_by(Appointment.start_at.asc(), Appointment.id.asc()).execution_options(populate_existing=True)
    if limit is not None:
        q = q.limit(limit)
    try:
        res = await db.execute(q)
    except SQLAlchemyError as e:
        logger.error("appointment_read_failed", operation="list", error=str(e))
        raise PersistenceError("Impossibile caricare gli appuntamenti", operation="list") from e
    return res.scalars().all()

async def list_upcoming(
    db: AsyncSession,
    *,
    now_utc: datetime,
    limit: int = 50,
) -> Sequence[Appointment]:
    q = (
        sa.select(Appointment)
        .where(Appointment.end_at > now_utc)
        .order_by(Appointment.start_at.asc())
        .limit(limit)
    )
    try:
        res = await db.execute(q)
    except SQLAlchemyError as e:
        raise PersistenceError("Impossibile caricare gli appuntamenti", operation="upcoming") from e
    return res.scalars().all()

async def get_appointment(db: AsyncSession, appointment_id: str) -> Optional[Appointment]:
    try:
        return await db.get(Appointment, appointment_id)
    except SQLAlchemyError as e:
        raise PersistenceError("Impossibile caricare l'appuntamento", operation="get") from e

async def create_appointment(db: AsyncSession, *, fields: dict[str, Any]) -> Appointment:
    appt = Appointment(**_clean(fields), created_at=datetime.now(timezone.utc))
    db.add(appt)
    await _commit(db, "create")
    await db.refresh(appt)
    return appt

async def create_appointments_batch(
    db: AsyncSession,
    *,
    rows: Iterable[dict[str, Any]],
) -> list[Appointment]:
    """Insert every row in one transaction: all land or none do."""
    now = datetime.now(timezone.utc)
    appts = [Appointment(**_clean(r), created_at=now) for r in rows]
    db.add_all(appts)
    await _commit(db, "create_batch", count=len(appts))
    return appts

async def update_appointment(
    db: AsyncSession,
    appointment_id: str,
    *,
    changes: dict[str, Any],
) -> Optional[Appointment]:
    """Partial update. Returns None when the row is gone."""
    appt = await get_appointment(db, appointment_id)
    if appt is None:
        return None
    for key, value in _clean(changes).items():
        setattr(appt, key, value)
    await _commit(db, "update", appointment_id=appointment_id)
    await db.refresh(appt)
    return appt

async def delete_appointment(db: AsyncSession, appointment_id: str) -> bool:
    appt = await get_appointment(db, appointment_id)
    if appt is None:
        return False
    await db.delete(appt)
    await _commit(db, "delete", appointment_id=appointment_id)
    return True
