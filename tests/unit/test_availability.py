"""Test unavailability validation."""
from datetime import datetime

import pytest

from healto_doctor.availability import (
    PRESET_REASONS,
    UnavailabilityError,
    format_wire_datetime,
    parse_local_datetime,
    resolve_reason,
    validate_unavailability,
)


def test_preset_reasons_end_with_other():
    assert PRESET_REASONS[-1] == "Other"
    assert "Vacation" in PRESET_REASONS


@pytest.mark.parametrize("text", ["2026-03-10 09:00:00", "2026-03-10 09:00", " 2026-03-10 09:00 "])
def test_parse_accepted_formats(text):
    assert parse_local_datetime(text) == datetime(2026, 3, 10, 9, 0)


@pytest.mark.parametrize("text", ["10/03/2026 09:00", "2026-03-10", "2026-13-10 09:00:00", "soon"])
def test_parse_rejects_other_formats(text):
    with pytest.raises(UnavailabilityError, match="Invalid date/time format"):
        parse_local_datetime(text)


def test_format_wire_datetime():
    assert format_wire_datetime(datetime(2026, 3, 10, 9, 5)) == "2026-03-10 09:05:00"


def test_resolve_reason():
    assert resolve_reason("Vacation", "ignored") == "Vacation"
    assert resolve_reason("Other", "  Family wedding ") == "Family wedding"
    assert resolve_reason("Other") == ""


def test_valid_window():
    start, end = validate_unavailability("Vacation", "2026-03-10 09:00:00", "2026-03-12 18:00")

    assert start == datetime(2026, 3, 10, 9, 0)
    assert end == datetime(2026, 3, 12, 18, 0)


@pytest.mark.parametrize("reason, start, end, message", [
    ("  ", "2026-03-10 09:00", "2026-03-10 10:00", "Please select or enter a reason for unavailability"),
    ("Vacation", "", "2026-03-10 10:00", "Please select start date and time"),
    ("Vacation", "2026-03-10 09:00", "", "Please select end date and time"),
    ("Vacation", "2026-03-10 10:00", "2026-03-10 10:00", "End date/time must be after start date/time"),
    ("Vacation", "2026-03-10 10:00", "2026-03-10 09:59", "End date/time must be after start date/time"),
])
def test_invalid_window(reason, start, end, message):
    with pytest.raises(UnavailabilityError) as exc:
        validate_unavailability(reason, start, end)

    assert str(exc.value) == message


def test_error_is_a_value_error():
    assert issubclass(UnavailabilityError, ValueError)
