# agenda/crud/settings.py

from __future__ import annotations
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from agenda.core.errors import PersistenceError
from agenda.db.models.practice_settings import PracticeSettings

PRICE_COLS = ("standard_invoice", "standard_cash", "machine_invoice", "machine_cash")

def flatten_settings(row: PracticeSettings) -> dict[str, Any]:
    """One mapping for the pricing resolver: legacy `extra` keys, then the real columns on top."""
    flat: dict[str, Any] = dict(row.extra or {})
    for col in PRICE_COLS:
        value = getattr(row, col)
        if value is not None:
            flat[col] = value
    flat["auto_apply_prices"] = row.auto_apply_prices
    return flat

async def get_practice_settings(db: AsyncSession, owner_id: Optional[str]) -> Optional[dict[str, Any]]:
    if not owner_id:
        return None
    try:
        row = await db.get(PracticeSettings, owner_id)
    except SQLAlchemyError as e:
        raise PersistenceError("Impossibile caricare le impostazioni", operation="settings") from e
    return flatten_settings(row) if row is not None else None
