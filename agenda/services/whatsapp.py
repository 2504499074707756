# agenda/services/whatsapp.py
"""
WhatsApp Web deep links for confirmations and reminders.

The core only builds the link; the practitioner sends it. Recording that it
was sent (`whatsapp_sent_at`) is done through the scheduler.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Literal, Optional
from urllib.parse import quote

import phonenumbers

from agenda.core.config import settings
from agenda.core.errors import ValidationError
from agenda.core.policy import CLINIC_ADDRESSES, DEFAULT_CLINIC_SITE, LOCAL_TZ
from agenda.services.time_grid import fmt_time, local_date, to_local

WHATSAPP_WEB_URL = "https://web.whatsapp.com/send"
# characters encodeURIComponent leaves alone
ENCODE_URI_SAFE = "-_.!~*'()"

MessageKind = Literal["confirmation", "reminder"]

DAY_NAMES = ["Domenica", "Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato"]
MONTH_NAMES = [
    "Gennaio", "Febbraio", "Marzo", "Aprile", "Maggio", "Giugno",
    "Luglio", "Agosto", "Settembre", "Ottobre", "Novembre", "Dicembre",
]

CONFIRMATION_TEMPLATE = (
    "Grazie per averci scelto.\n"
    "Ricordiamo il prossimo appuntamento fissato per {data_relativa} alle {ora}.\n"
    "\n"
    "A presto,\n"
    "{firma}"
)

REMINDER_TEMPLATE = (
    "Buongiorno {nome},\n"
    "\n"
    "Le ricordiamo il suo appuntamento di {data_relativa} alle ore ⏰ {ora}.\n"
    "\n"
    "📍 {luogo}\n"
    "\n"
    "Cordiali saluti,\n"
    "{firma}"
)

TEMPLATES = {"confirmation": CONFIRMATION_TEMPLATE, "reminder": REMINDER_TEMPLATE}

def normalize_phone(phone: Optional[str], country_code: Optional[str] = None) -> Optional[str]:
    """Digits only, national leading 0 swapped for the country code, '+' in front."""
    if not phone:
        return None
    digits = phonenumbers.normalize_digits_only(phone)
    if not digits:
        return None
    if digits.startswith("0"):
        digits = (country_code or settings.PHONE_COUNTRY_CODE) + digits[1:]
    return "+" + digits

def relative_date(when: datetime, today: date) -> str:
    d = local_date(when)
    delta = (d - today).days
    if delta == 0:
        return "Oggi"
    if delta == 1:
        return "Domani"
    # isoweekday: Monday=1 .. Sunday=7, DAY_NAMES starts on Sunday
    return f"{DAY_NAMES[d.isoweekday() % 7]} {d.day} {MONTH_NAMES[d.month - 1]}"

def place_of(appointment) -> str:
    if appointment.location == "domicile":
        return f"Presso il suo domicilio ({appointment.domicile_address or ''})"
    site = appointment.clinic_site or ""
    return CLINIC_ADDRESSES.get(site) or site or CLINIC_ADDRESSES[DEFAULT_CLINIC_SITE]

def render_message(appointment, first_name: Optional[str], kind: MessageKind,
                   today: date, template: Optional[str] = None) -> str:
    text = template or TEMPLATES[kind]
    name = (first_name or "").strip() or "Cliente"
    replacements = {
        "{nome}": name,
        "{data_relativa}": relative_date(appointment.start_at, today),
        "{ora}": fmt_time(appointment.start_at),
        "{luogo}": place_of(appointment),
        "{firma}": settings.PRACTITIONER_SIGNATURE,
    }
    # plain substitution: unknown braces in custom templates stay as typed
    for key, value in replacements.items():
        text = text.replace(key, value)
    return text

def whatsapp_link(phone: Optional[str], message: str) -> str:
    clean = normalize_phone(phone)
    if not clean:
        raise ValidationError("Nessun telefono registrato per questo paziente", field="phone")
    return f"{WHATSAPP_WEB_URL}?phone={clean}&text={quote(message, safe=ENCODE_URI_SAFE)}"

def build_whatsapp_link(appointment, patient, kind: MessageKind = "reminder",
                        now: Optional[datetime] = None) -> str:
    today = to_local(now).date() if now else datetime.now(LOCAL_TZ).date()
    message = render_message(
        appointment,
        getattr(patient, "first_name", None),
        kind,
        today,
    )
    return whatsapp_link(getattr(patient, "phone", None), message)
