# agenda/services/status.py
"""
Status/payment lifecycle. The only place `is_paid` is derived.
"""
from __future__ import annotations
from typing import Optional

from agenda.core.errors import ValidationError

STATUSES: tuple[str, ...] = ("booked", "confirmed", "done", "not_paid", "cancelled")

# Legacy values still present in older rows/clients
STATUS_ALIASES = {"no_show": "not_paid"}

STATUS_LABELS = {
    "confirmed": "Confermato",
    "done": "Eseguito",
    "not_paid": "Non pagata",
    "cancelled": "Annullato",
    "booked": "Prenotato",
}

def normalize_status(value: Optional[str]) -> str:
    raw = (value or "").strip().lower()
    raw = STATUS_ALIASES.get(raw, raw)
    if raw not in STATUSES:
        raise ValidationError(f"Stato non valido: {value!r}", field="status")
    return raw

def status_fields(status: str) -> dict:
    """Columns to write for a status change: the status and its paid flag."""
    normalized = normalize_status(status)
    return {"status": normalized, "is_paid": normalized == "done"}

def toggled_status(current: Optional[str]) -> str:
    return "confirmed" if current == "done" else "done"

def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status or "", STATUS_LABELS["booked"])
