# agenda/crud/patient.py

from __future__ import annotations
from typing import Iterable, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from agenda.core.errors import PersistenceError
from agenda.db.models.patient import Patient

async def get_patient(db: AsyncSession, patient_id: Optional[str]) -> Optional[Patient]:
    if not patient_id:
        return None
    try:
        return await db.get(Patient, patient_id)
    except SQLAlchemyError as e:
        raise PersistenceError("Impossibile caricare il paziente", operation="patient") from e

async def get_patients(db: AsyncSession, patient_ids: Iterable[Optional[str]]) -> dict[str, Patient]:
    ids = sorted({pid for pid in patient_ids if pid})
    if not ids:
        return {}
    try:
        res = await db.execute(sa.select(Patient).where(Patient.id.in_(ids)))
    except SQLAlchemyError as e:
        raise PersistenceError("Impossibile caricare i pazienti", operation="patients") from e
    return {p.id: p for p in res.scalars().all()}
