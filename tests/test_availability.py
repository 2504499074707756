#!/usr/bin/env python3
"""
Tests for free/occupied slot computation and the occupancy forecast.
"""

import pytest
import sys
import os
from datetime import date, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from agenda.services.availability import (
    available_slots,
    find_conflicts,
    occupancy_forecast,
    overlaps,
    slot_grid,
    suggest_slot,
)
from factories import local, make_appt

DAY = date(2024, 3, 4)


def labels(slots):
    return [s.label for s in slots]


@pytest.mark.unit
class TestOverlaps:
    def test_touching_edges_do_not_overlap(self):
        assert not overlaps(local(2024, 3, 4, 9), local(2024, 3, 4, 10),
                            local(2024, 3, 4, 10), local(2024, 3, 4, 11))

    def test_partial_overlap(self):
        assert overlaps(local(2024, 3, 4, 9), local(2024, 3, 4, 10, 30),
                        local(2024, 3, 4, 10), local(2024, 3, 4, 11))

    def test_containment(self):
        assert overlaps(local(2024, 3, 4, 8), local(2024, 3, 4, 12),
                        local(2024, 3, 4, 10), local(2024, 3, 4, 11))


@pytest.mark.unit
class TestSlots:
    def test_grid_covers_window_on_half_hours(self):
        grid = slot_grid(DAY, [])
        assert len(grid) == 30
        assert grid[0].label == "07:00"
        assert grid[-1].label == "21:30"
        assert all(s.end - s.start == timedelta(hours=1) for s in grid)
        assert not any(s.occupied for s in grid)

    def test_half_hour_cells_around_ten_to_eleven(self):
        appts = [make_appt(local(2024, 3, 4, 10), local(2024, 3, 4, 11))]
        free = labels(available_slots(DAY, appts, slot_minutes=30))
        assert "10:00" not in free
        assert "10:30" not in free
        for label in ("09:00", "09:30", "11:00", "11:30"):
            assert label in free

    def test_one_hour_candidates_around_ten_to_eleven(self):
        appts = [make_appt(local(2024, 3, 4, 10), local(2024, 3, 4, 11))]
        free = labels(available_slots(DAY, appts))
        assert "09:00" in free
        assert "11:00" in free
        for label in ("09:30", "10:00", "10:30"):
            assert label not in free

    def test_free_slots_never_overlap_appointments(self):
        appts = [
            make_appt(local(2024, 3, 4, 8, 15), local(2024, 3, 4, 9), id="a"),
            make_appt(local(2024, 3, 4, 13), local(2024, 3, 4, 14, 30), id="b"),
            make_appt(local(2024, 3, 4, 18, 45), local(2024, 3, 4, 19, 5), id="c"),
        ]
        for slot in available_slots(DAY, appts):
            assert not any(overlaps(slot.start, slot.end, a.start_at, a.end_at) for a in appts)

    def test_appointments_on_other_days_are_ignored(self):
        appts = [make_appt(local(2024, 3, 5, 10), local(2024, 3, 5, 11))]
        assert len(available_slots(DAY, appts)) == 30

    def test_cancelled_appointments_still_occupy(self):
        appts = [make_appt(local(2024, 3, 4, 10), local(2024, 3, 4, 11), status="cancelled")]
        assert "10:00" not in labels(available_slots(DAY, appts))


@pytest.mark.unit
class TestForecast:
    def test_low_occupancy(self):
        appts = [
            make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10), id="a"),
            make_appt(local(2024, 3, 4, 11), local(2024, 3, 4, 12, 30), id="b"),
        ]
        forecast = occupancy_forecast(DAY, appts)
        assert forecast.total_events == 2
        assert forecast.occupied_minutes == 150
        assert forecast.available_minutes == 750
        assert forecast.available_hours == 12
        assert forecast.occupancy_rate == pytest.approx(16.67, abs=0.01)
        assert forecast.recommendation == "BASSA OCCUPAZIONE"

    @pytest.mark.parametrize("minutes,expected", [
        (180, "BASSA OCCUPAZIONE"),   # exactly 20%
        (200, "MEDIA OCCUPAZIONE"),
        (360, "MEDIA OCCUPAZIONE"),   # exactly 40%
        (400, "ALTA OCCUPAZIONE"),
    ])
    def test_threshold_bands(self, minutes, expected):
        start = local(2024, 3, 4, 8)
        appts = [make_appt(start, start + timedelta(minutes=minutes))]
        assert occupancy_forecast(DAY, appts).recommendation == expected

    def test_overlapping_appointments_are_summed(self):
        appts = [
            make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10), id="a"),
            make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10), id="b"),
        ]
        assert occupancy_forecast(DAY, appts).occupied_minutes == 120


@pytest.mark.unit
class TestSuggestSlot:
    def test_skips_slots_about_to_start(self):
        appts = [make_appt(local(2024, 3, 4, 7), local(2024, 3, 4, 9))]
        assert suggest_slot(DAY, appts, now=local(2024, 3, 4, 9, 55)) == local(2024, 3, 4, 10, 30)

    def test_future_day_gets_first_free_slot(self):
        appts = [make_appt(local(2024, 3, 4, 7), local(2024, 3, 4, 9))]
        assert suggest_slot(DAY, appts, now=local(2024, 3, 1, 12)) == local(2024, 3, 4, 9)

    def test_late_in_the_day_falls_back_to_first_free(self):
        assert suggest_slot(DAY, [], now=local(2024, 3, 4, 23)) == local(2024, 3, 4, 7)

    def test_full_day_falls_back_to_window_start(self):
        appts = [make_appt(local(2024, 3, 4, 7), local(2024, 3, 4, 22, 30))]
        assert suggest_slot(DAY, appts, now=local(2024, 3, 4, 6)) == local(2024, 3, 4, 7)


@pytest.mark.unit
def test_find_conflicts_reports_overlaps_only():
    appts = [
        make_appt(local(2024, 3, 4, 9), local(2024, 3, 4, 10), id="a"),
        make_appt(local(2024, 3, 4, 10), local(2024, 3, 4, 11), id="b"),
        make_appt(local(2024, 3, 4, 10, 30), local(2024, 3, 4, 11, 30), id="c"),
    ]
    assert find_conflicts(appts, local(2024, 3, 4, 10), local(2024, 3, 4, 11)) == ["b", "c"]
    assert find_conflicts(appts, local(2024, 3, 4, 10), local(2024, 3, 4, 11), exclude_id="b") == ["c"]
