#!/usr/bin/env python3
"""
Tests for WhatsApp deep links and message rendering.
"""

import pytest
import sys
import os
from datetime import date
from types import SimpleNamespace
from urllib.parse import unquote

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from agenda.core.errors import ValidationError
from agenda.services.whatsapp import (
    build_whatsapp_link,
    normalize_phone,
    place_of,
    relative_date,
    render_message,
    whatsapp_link,
)
from factories import local, make_appt

MONDAY = date(2024, 3, 4)


@pytest.mark.unit
class TestPhone:
    def test_national_number_gets_country_code(self):
        assert normalize_phone("0776 123 4567") == "+397761234567"

    def test_international_number_keeps_digits(self):
        assert normalize_phone("+39 (333) 123-45.67") == "+393331234567"

    def test_bare_mobile(self):
        assert normalize_phone("3331234567") == "+3331234567"

    def test_empty(self):
        assert normalize_phone("") is None
        assert normalize_phone(None) is None
        assert normalize_phone("n/d") is None


@pytest.mark.unit
class TestMessage:
    def test_relative_dates(self):
        assert relative_date(local(2024, 3, 4, 9), MONDAY) == "Oggi"
        assert relative_date(local(2024, 3, 5, 9), MONDAY) == "Domani"
        assert relative_date(local(2024, 3, 8, 9), MONDAY) == "Venerdì 8 Marzo"
        assert relative_date(local(2024, 3, 10, 9), MONDAY) == "Domenica 10 Marzo"

    def test_place_for_known_clinic(self):
        appt = make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10))
        assert place_of(appt) == "Pontecorvo, Via Galileo Galilei 5, dietro il Bar Principe"

    def test_place_for_other_clinic_and_home(self):
        appt = make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10), clinic_site="Studio Cassino")
        assert place_of(appt) == "Studio Cassino"
        appt.clinic_site = None
        assert place_of(appt).startswith("Pontecorvo")
        appt.location = "domicile"
        appt.domicile_address = "Via Roma 1"
        assert place_of(appt) == "Presso il suo domicilio (Via Roma 1)"

    def test_reminder(self):
        appt = make_appt(local(2024, 3, 5, 9, 30), local(2024, 3, 5, 10, 30))
        text = render_message(appt, " Maria ", "reminder", MONDAY)
        assert text.startswith("Buongiorno Maria,\n\n")
        assert "Le ricordiamo il suo appuntamento di Domani alle ore ⏰ 09:30." in text
        assert "📍 Pontecorvo, Via Galileo Galilei 5" in text
        assert text.endswith("Cordiali saluti,\nDr. Marco Turchetta\nFisioterapia e Osteopatia")

    def test_confirmation_and_name_fallback(self):
        appt = make_appt(local(2024, 3, 4, 18), local(2024, 3, 4, 19))
        text = render_message(appt, "", "confirmation", MONDAY)
        assert "fissato per Oggi alle 18:00." in text
        assert render_message(appt, None, "reminder", MONDAY).startswith("Buongiorno Cliente,")

    def test_custom_template(self):
        appt = make_appt(local(2024, 3, 4, 18), local(2024, 3, 4, 19))
        assert render_message(appt, "Maria", "reminder", MONDAY, template="Ciao {nome} {ora} {x}") == "Ciao Maria 18:00 {x}"


@pytest.mark.unit
class TestLink:
    def test_link_shape(self):
        url = whatsapp_link("0776 123 4567", "Ciao & a presto")
        assert url.startswith("https://web.whatsapp.com/send?phone=+397761234567&text=")
        encoded = url.split("&text=", 1)[1]
        assert " " not in encoded and "&" not in encoded
        assert unquote(encoded) == "Ciao & a presto"

    def test_missing_phone(self):
        with pytest.raises(ValidationError):
            whatsapp_link(None, "Ciao")

    def test_build_for_patient(self):
        appt = make_appt(local(2024, 3, 5, 9, 30), local(2024, 3, 5, 10, 30))
        patient = SimpleNamespace(first_name="Maria", phone="333 1234567")
        url = build_whatsapp_link(appt, patient, kind="reminder", now=local(2024, 3, 4, 12))
        assert "Buongiorno%20Maria" in url
        assert "Domani" in url
