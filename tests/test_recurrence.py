#!/usr/bin/env python3
"""
Tests for weekly recurrence expansion.
"""

import pytest
import sys
import os
from datetime import date, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from agenda.core.errors import RecurrenceCapExceeded, ValidationError
from agenda.schemas.appointment import RecurrenceRequest
from agenda.services.recurrence import build_series, describe_weekdays, generate_occurrences
from factories import local


def request(start, end, weekdays, until):
    return RecurrenceRequest(start_at=start, end_at=end, weekdays=frozenset(weekdays), until=until)


@pytest.mark.unit
class TestGenerateOccurrences:
    def test_mon_wed_fri_for_two_weeks(self):
        req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 10), {1, 3, 5}, date(2024, 3, 15))
        occurrences = generate_occurrences(req)
        assert [o.day for o in occurrences] == [4, 6, 8, 11, 13, 15]
        assert all(o.hour == 9 and o.minute == 0 for o in occurrences)

    def test_every_occurrence_is_on_a_selected_weekday_and_not_before_seed(self):
        seed = local(2024, 5, 8, 16, 30)  # Wednesday
        req = request(seed, seed + timedelta(minutes=45), {1, 2, 4, 6}, date(2024, 6, 30))
        occurrences = generate_occurrences(req)
        assert occurrences
        assert all(o.isoweekday() in {1, 2, 4, 6} for o in occurrences)
        assert all(o >= seed for o in occurrences)
        assert occurrences == sorted(occurrences)

    def test_seed_day_included_when_selected(self):
        seed = local(2024, 3, 6, 11)  # Wednesday
        req = request(seed, seed + timedelta(hours=1), {3}, date(2024, 3, 6))
        assert generate_occurrences(req) == [seed]

    def test_wall_clock_time_kept_across_dst(self):
        seed = local(2024, 3, 25, 9)  # last Monday before summer time
        req = request(seed, seed + timedelta(hours=1), {1}, date(2024, 4, 1))
        occurrences = generate_occurrences(req)
        assert [o.date() for o in occurrences] == [date(2024, 3, 25), date(2024, 4, 1)]
        assert occurrences[1].hour == 9

    def test_cap_allows_exactly_two_hundred(self):
        seed = local(2024, 1, 1, 8)  # Monday
        req = request(seed, seed + timedelta(hours=1), {1, 2, 3, 4, 5, 6}, date(2024, 8, 20))
        assert len(generate_occurrences(req)) == 200

    def test_cap_rejects_two_hundred_and_one(self):
        seed = local(2024, 1, 1, 8)
        req = request(seed, seed + timedelta(hours=1), {1, 2, 3, 4, 5, 6}, date(2024, 8, 21))
        with pytest.raises(RecurrenceCapExceeded) as exc:
            generate_occurrences(req)
        assert exc.value.count == 201
        assert "oltre 200 appuntamenti" in exc.value.message
        assert isinstance(exc.value, ValidationError)

    def test_open_ended_until_is_rejected_without_walking_the_calendar(self):
        seed = local(2024, 3, 4, 9)
        req = request(seed, seed + timedelta(hours=1), {1}, date.max)
        with pytest.raises(RecurrenceCapExceeded) as exc:
            generate_occurrences(req)
        assert exc.value.count == 201


@pytest.mark.unit
class TestValidation:
    def test_empty_weekdays(self):
        req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 10), set(), date(2024, 3, 15))
        with pytest.raises(ValidationError) as exc:
            generate_occurrences(req)
        assert exc.value.field == "weekdays"

    def test_sunday_is_not_selectable(self):
        req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 10), {1, 7}, date(2024, 3, 15))
        with pytest.raises(ValidationError):
            generate_occurrences(req)

    def test_until_before_seed(self):
        req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 10), {1}, date(2024, 3, 3))
        with pytest.raises(ValidationError) as exc:
            generate_occurrences(req)
        assert exc.value.field == "until"

    def test_non_positive_duration(self):
        req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 9), {1}, date(2024, 3, 15))
        with pytest.raises(ValidationError) as exc:
            generate_occurrences(req)
        assert exc.value.field == "end_at"


@pytest.mark.unit
def test_build_series_shares_duration_and_metadata():
    req = request(local(2024, 3, 4, 9), local(2024, 3, 4, 9, 45), {1, 5}, date(2024, 3, 15))
    rows = build_series(req, {"patient_id": "p1", "treatment_type": "macchinario", "amount": None})
    assert len(rows) == 4
    for row in rows:
        assert row["end_at"] - row["start_at"] == timedelta(minutes=45)
        assert row["patient_id"] == "p1"
        assert row["treatment_type"] == "macchinario"


@pytest.mark.unit
def test_describe_weekdays():
    assert describe_weekdays({5, 1, 3}) == "LUN, MER, VEN"
