#!/usr/bin/env python3
"""
Tests for the status/payment lifecycle.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from agenda.core.errors import ValidationError
from agenda.services.status import normalize_status, status_fields, status_label, toggled_status


@pytest.mark.unit
class TestStatusLifecycle:
    @pytest.mark.parametrize("status", ["booked", "confirmed", "done", "not_paid", "cancelled"])
    def test_known_statuses_pass_through(self, status):
        assert normalize_status(status) == status

    def test_no_show_is_not_paid(self):
        assert normalize_status("no_show") == "not_paid"

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError):
            normalize_status("archived")

    def test_is_paid_follows_done(self):
        assert status_fields("done") == {"status": "done", "is_paid": True}
        assert status_fields("confirmed") == {"status": "confirmed", "is_paid": False}
        assert status_fields("no_show") == {"status": "not_paid", "is_paid": False}

    def test_toggle_pair_restores_state(self):
        assert toggled_status("done") == "confirmed"
        assert toggled_status("confirmed") == "done"
        for start in ("booked", "not_paid", "cancelled"):
            assert toggled_status(start) == "done"

        first = status_fields(toggled_status("done"))
        second = status_fields(toggled_status(first["status"]))
        assert second == {"status": "done", "is_paid": True}

    def test_labels(self):
        assert status_label("confirmed") == "Confermato"
        assert status_label("done") == "Eseguito"
        assert status_label("not_paid") == "Non pagata"
        assert status_label("cancelled") == "Annullato"
        assert status_label("booked") == "Prenotato"
        assert status_label("whatever") == "Prenotato"
        assert status_label(None) == "Prenotato"
