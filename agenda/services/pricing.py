# agenda/services/pricing.py
"""
Default price lookup.

Settings rows have been written by several client versions over time, so the
same price can live under different keys. The lookup tries every known shape,
first numeric hit wins, and falls back to 0. It never raises.
"""
from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from agenda.core.errors import ValidationError

TWO_PLACES = Decimal("0.01")

# Name the settings screen uses for each treatment
COLUMN_PREFIX = {"seduta": "standard", "macchinario": "machine"}
PRICE_SUFFIX = {"invoiced": "invoice", "cash": "cash"}
NESTED_KEYS = ("prices", "pricing", "default_prices")

def _as_number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None

def pick_number(source: Any, keys: Iterable[str]) -> Optional[Decimal]:
    if not isinstance(source, Mapping):
        return None
    for key in keys:
        number = _as_number(source.get(key))
        if number is not None:
            return number
    return None

def flat_keys(treatment_type: str, price_type: str) -> list[str]:
    t, p = treatment_type, price_type
    suffix = PRICE_SUFFIX.get(p, p)
    keys = [
        f"{t}_{p}_price",
        f"{t}_{p}",
        f"price_{t}_{p}",
        f"default_{t}_{p}",
        f"{t}_{suffix}",
        f"price_{t}_{suffix}",
    ]
    if t in COLUMN_PREFIX:
        keys.append(f"{COLUMN_PREFIX[t]}_{suffix}")
    return keys

def resolve_default_amount(treatment_type: str, price_type: str,
                           settings: Optional[Mapping[str, Any]]) -> Decimal:
    s = settings or {}
    flat = pick_number(s, flat_keys(treatment_type, price_type))
    if flat is not None:
        return flat

    for key in NESTED_KEYS:
        group = s.get(key) if isinstance(s, Mapping) else None
        nested = pick_number(group.get(treatment_type) if isinstance(group, Mapping) else None, [price_type])
        if nested is not None:
            return nested

    return Decimal(0)

def auto_apply_enabled(settings: Optional[Mapping[str, Any]]) -> bool:
    # unset means on
    return (settings or {}).get("auto_apply_prices") is not False

def resolve_amount_for_create(custom_amount: Optional[Decimal], treatment_type: str,
                              price_type: str, settings: Optional[Mapping[str, Any]]) -> Optional[Decimal]:
    """A typed custom amount (0 included) always wins over the defaults."""
    if custom_amount is not None and custom_amount >= 0:
        return custom_amount
    if auto_apply_enabled(settings):
        return resolve_default_amount(treatment_type, price_type, settings)
    return None

def effective_amount(appointment: Any, settings: Optional[Mapping[str, Any]]) -> Decimal:
    """Stored amount, or the default for the appointment's treatment/price type."""
    amount = getattr(appointment, "amount", None)
    if amount is not None:
        return Decimal(amount)
    return resolve_default_amount(appointment.treatment_type, appointment.price_type, settings)

def parse_amount(raw: Union[str, Decimal, int, float, None]) -> Optional[Decimal]:
    """Form input to a two-place Decimal. Accepts "12,50" and "12.50"; blank is None."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError("Importo non valido", field="amount")
    if isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return None
    else:
        text = str(raw)
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError("Importo non valido", field="amount", value=str(raw)[:20])
    if not value.is_finite():
        raise ValidationError("Importo non valido", field="amount", value=str(raw)[:20])
    if value < 0:
        raise ValidationError("L'importo non può essere negativo", field="amount")
    return value.quantize(TWO_PLACES)

def format_euro(amount: Decimal) -> str:
    """`€40`, `€12.5`: same rendering the CSV and calendar details use."""
    normalized = amount.normalize()
    if normalized == normalized.to_integral():
        return f"€{normalized.quantize(Decimal(1))}"
    return f"€{normalized}"
