# agenda/services/exports.py
from __future__ import annotations
import csv
import io
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from agenda.services.google_calendar import TREATMENT_LABELS
from agenda.services.pricing import effective_amount, format_euro
from agenda.services.status import status_label
from agenda.services.time_grid import fmt_dmy, fmt_time

CSV_HEADER = ["Data", "Ora Inizio", "Ora Fine", "Paziente", "Stato", "Trattamento", "Prezzo", "Sede", "Fatturato"]

def csv_filename(today: date) -> str:
    return f"appuntamenti_{today.strftime('%d-%m-%Y')}.csv"

def csv_row(appointment, patient_name: str, settings: Optional[Mapping[str, Any]]) -> list[str]:
    return [
        fmt_dmy(appointment.start_at),
        fmt_time(appointment.start_at),
        fmt_time(appointment.end_at),
        patient_name,
        status_label(appointment.status),
        TREATMENT_LABELS.get(appointment.treatment_type, appointment.treatment_type),
        format_euro(effective_amount(appointment, settings)),
        "DOMICILIO" if appointment.location == "domicile" else (appointment.clinic_site or ""),
        "Sì" if appointment.price_type == "invoiced" else "No",
    ]

def export_csv(appointments: Iterable[Any], patient_names: Mapping[str, str],
               settings: Optional[Mapping[str, Any]] = None) -> str:
    """CSV text (header + one row per appointment), newline-separated."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for appt in appointments:
        writer.writerow(csv_row(appt, patient_names.get(appt.patient_id or "", ""), settings))
    return buf.getvalue()
