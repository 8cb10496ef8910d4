"""Validation of the "mark unavailable" window.

Datetimes travel as naive local "YYYY-MM-DD HH:MM:SS" strings, the format
the server expects for unavailable_from / unavailable_until.
"""
from datetime import datetime
from typing import Tuple

WIRE_FORMAT = "%Y-%m-%d %H:%M:%S"
ACCEPTED_FORMATS = (WIRE_FORMAT, "%Y-%m-%d %H:%M")

OTHER_REASON = "Other"
PRESET_REASONS = (
    "Personal Emergency",
    "Medical Conference",
    "Vacation",
    "Sick Leave",
    "Equipment Maintenance",
    OTHER_REASON,
)


class UnavailabilityError(ValueError):
    """Raised when an unavailability request fails local validation."""
    pass


def parse_local_datetime(value: str) -> datetime:
    """
    Parse a naive local datetime in one of the accepted formats.

    Raises:
        UnavailabilityError: If no format matches
    """
    text = value.strip()
    for fmt in ACCEPTED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise UnavailabilityError("Invalid date/time format")


def format_wire_datetime(value: datetime) -> str:
    return value.strftime(WIRE_FORMAT)


def resolve_reason(selected: str, custom: str = "") -> str:
    """Use the custom text when "Other" was picked."""
    if selected == OTHER_REASON:
        return (custom or "").strip()
    return (selected or "").strip()


def validate_unavailability(
    reason: str,
    unavailable_from: str,
    unavailable_until: str
) -> Tuple[datetime, datetime]:
    """
    Check an unavailability request before sending it.

    Args:
        reason: Reason text (preset or custom)
        unavailable_from: Start, "YYYY-MM-DD HH:MM[:SS]"
        unavailable_until: End, "YYYY-MM-DD HH:MM[:SS]"

    Returns:
        (start, end) as naive datetimes

    Raises:
        UnavailabilityError: With a message suitable for the doctor
    """
    if not (reason or "").strip():
        raise UnavailabilityError("Please select or enter a reason for unavailability")
    if not (unavailable_from or "").strip():
        raise UnavailabilityError("Please select start date and time")
    if not (unavailable_until or "").strip():
        raise UnavailabilityError("Please select end date and time")

    start = parse_local_datetime(unavailable_from)
    end = parse_local_datetime(unavailable_until)

    if end <= start:
        raise UnavailabilityError("End date/time must be after start date/time")

    return start, end
