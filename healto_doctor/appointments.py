"""Appointment list helpers for the dashboard and list views.

The server formats ``appointment_date`` as "DD Mon, YYYY" (e.g. "05 Mar, 2026"),
so "today" is matched on that string.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from healto_doctor.decoders import AppointmentSummary

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

STATUS_ALL = "all"
STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"


@dataclass
class DashboardSummary:
    """Counts and ordered rows for today's appointments."""
    total: int = 0
    pending: int = 0
    completed: int = 0
    appointments: List[AppointmentSummary] = field(default_factory=list)


def format_dashboard_date(day: date) -> str:
    """
    Format a date the way the API reports appointment dates.

    Example:
        >>> format_dashboard_date(date(2026, 3, 5))
        '05 Mar, 2026'
    """
    # Locale-independent month names
    return f"{day.day:02d} {MONTH_ABBREVIATIONS[day.month - 1]}, {day.year}"


def sort_by_time(appointments: List[AppointmentSummary]) -> List[AppointmentSummary]:
    """Order by scheduled time, earliest first; missing times sort first."""
    return sorted(appointments, key=lambda apt: apt.scheduled_time or "00:00")


def filter_by_status(
    appointments: List[AppointmentSummary],
    status: Optional[str]
) -> List[AppointmentSummary]:
    """
    Keep appointments with the given status.

    Args:
        appointments: Decoded appointment rows
        status: "scheduled", "completed", ... or "all"/None for everything
    """
    if not status or status.lower() == STATUS_ALL:
        return list(appointments)
    wanted = status.lower()
    return [apt for apt in appointments if (apt.status or "").lower() == wanted]


def summarize_today(
    appointments: List[AppointmentSummary],
    today: Optional[date] = None
) -> DashboardSummary:
    """
    Build the dashboard summary for one day.

    Args:
        appointments: All appointments returned by the list endpoint
        today: Day to summarize (default: local today)

    Returns:
        DashboardSummary with totals and time-ordered rows
    """
    label = format_dashboard_date(today or date.today())
    todays = [apt for apt in appointments if apt.appointment_date == label]

    return DashboardSummary(
        total=len(todays),
        pending=len(filter_by_status(todays, STATUS_SCHEDULED)),
        completed=len(filter_by_status(todays, STATUS_COMPLETED)),
        appointments=sort_by_time(todays),
    )
