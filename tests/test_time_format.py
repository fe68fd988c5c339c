from datetime import date

import pytest

from booking_engine.application.use_cases.slot_grid import (
    AFTERNOON_TIMES,
    MORNING_TIMES,
    generate_slot_grid,
    is_grid_time,
)
from booking_engine.application.utils.time_format import (
    canonical_to_display,
    display_to_canonical,
    format_api_date,
    format_display_date,
    to_canonical,
)
from booking_engine.domain.entities.time_slot import AFTERNOON, MORNING


def test_display_and_canonical_are_exact_inverses():
    for hour in range(24):
        canonical = f"{hour:02d}:00"
        assert display_to_canonical(canonical_to_display(canonical)) == canonical


def test_display_format_around_noon_and_midnight():
    assert canonical_to_display("08:00") == "8:00 AM - 9:00 AM"
    assert canonical_to_display("11:00") == "11:00 AM - 12:00 PM"
    assert canonical_to_display("12:00") == "12:00 PM - 1:00 PM"
    assert canonical_to_display("14:00") == "2:00 PM - 3:00 PM"
    assert canonical_to_display("23:00") == "11:00 PM - 12:00 AM"
    assert canonical_to_display("00:00") == "12:00 AM - 1:00 AM"


def test_to_canonical_accepts_both_forms():
    assert to_canonical("9:00") == "09:00"
    assert to_canonical("2:00 PM - 3:00 PM") == "14:00"
    assert to_canonical("12:00 pm - 1:00 pm") == "12:00"


@pytest.mark.parametrize("bad", ["", "9", "25:00", "09:30", "2:00 PM - 4:00 PM", "13:00 PM - 2:00 PM", "noon"])
def test_malformed_times_are_rejected(bad):
    with pytest.raises(ValueError):
        to_canonical(bad)


def test_dates_are_formatted_from_civil_fields():
    assert format_api_date(date(2025, 3, 9)) == "2025-03-09"
    assert format_display_date(date(2025, 3, 10)) == "Mon, Mar 10, 2025"


def test_grid_has_four_morning_and_four_afternoon_slots():
    grid = generate_slot_grid(date(2025, 3, 10))

    assert [s.time for s in grid] == list(MORNING_TIMES + AFTERNOON_TIMES)
    assert [s.period for s in grid] == [MORNING] * 4 + [AFTERNOON] * 4
    assert grid[0].display == "8:00 AM - 9:00 AM"
    assert grid[-1].display == "5:00 PM - 6:00 PM"
    # same grid regardless of date
    assert grid == generate_slot_grid(date(2030, 1, 1))


def test_lunch_hours_are_not_grid_times():
    assert is_grid_time("11:00")
    assert not is_grid_time("12:00")
    assert not is_grid_time("13:00")
