#!/usr/bin/env python3
"""Terminal client for the Healto doctor API.

Usage:
    python terminal_client.py

Features:
- Login session persisted between runs
- Today's dashboard, appointment list, detail and history
- Start / end appointments
- Availability toggle
- Colored output
"""
import getpass
import sys
from typing import Callable, List

from healto_doctor import config
from healto_doctor.appointments import filter_by_status, summarize_today
from healto_doctor.auth import AuthService
from healto_doctor.availability import UnavailabilityError, validate_unavailability
from healto_doctor.decoders import (
    AppointmentSummary,
    PayloadError,
    decode_appointment_detail,
    decode_appointments,
    decode_profile,
)
from healto_doctor.dependencies import create_auth_service
from healto_doctor.logging_config import setup_structured_logging


# ANSI color codes
class Colors:
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


HELP_TEXT = [
    "  /login              - Sign in",
    "  /logout             - Sign out and forget the session",
    "  /whoami             - Show the signed-in doctor",
    "  /today              - Today's dashboard",
    "  /appointments [st]  - All appointments, optionally by status",
    "  /find <name>        - Appointments by patient name",
    "  /show <id>          - Appointment details",
    "  /start <id>         - Start an appointment",
    "  /end <id>           - End an appointment",
    "  /history            - Completed appointments",
    "  /available          - Mark yourself available",
    "  /unavailable        - Mark yourself unavailable",
    "  /password           - Change password",
    "  /quit               - Exit",
]


def print_colored(text: str, color: str = Colors.RESET, end: str = "\n"):
    """Print colored text."""
    print(f"{color}{text}{Colors.RESET}", end=end)


def print_appointments(appointments: List[AppointmentSummary]):
    if not appointments:
        print_colored("No appointments found", Colors.YELLOW)
        return
    for apt in appointments:
        print(
            f"  #{apt.id:<6} {apt.appointment_date or '-':<14} "
            f"{apt.scheduled_time or '--:--':<6} {apt.patient_name or 'Unknown':<24} "
            f"[{apt.status or '?'}]"
        )


def require_login(auth: AuthService) -> bool:
    if auth.is_authenticated():
        return True
    print_colored("Not signed in. Use /login first.", Colors.YELLOW)
    return False


def do_login(auth: AuthService, prompt: Callable[[str], str], secret: Callable[[str], str]):
    username = prompt("Username: ")
    password = secret("Password: ")
    outcome = auth.login(username, password)
    color = Colors.GREEN if outcome.success else Colors.RED
    print_colored(outcome.message, color)


def do_logout(auth: AuthService):
    result = auth.logout()
    if result.success:
        print_colored("You have been successfully logged out.", Colors.GREEN)
    else:
        print_colored(f"Logout failed: {result.error}", Colors.RED)


def do_whoami(auth: AuthService):
    result = auth.gateway.get_profile()
    try:
        profile = decode_profile(result)
    except PayloadError as e:
        print_colored(f"Failed to fetch doctor profile: {e}", Colors.RED)
        return
    print_colored(f"Dr. {profile.name} (#{profile.id})", Colors.BOLD)
    print(f"  Email: {profile.email or '-'}  Phone: {profile.phone or '-'}")
    if profile.is_available is not None:
        print(f"  Available: {'yes' if profile.is_available else 'no'}")


def do_today(auth: AuthService):
    result = auth.gateway.list_appointments()
    try:
        appointments = decode_appointments(result)
    except PayloadError as e:
        print_colored(f"Failed to fetch appointments: {e}", Colors.RED)
        return
    summary = summarize_today(appointments)
    print_colored(
        f"Today: {summary.total} patients, {summary.pending} pending, "
        f"{summary.completed} completed",
        Colors.BOLD,
    )
    print_appointments(summary.appointments)


def do_list(auth: AuthService, filters: dict, status: str = None):
    result = auth.gateway.list_appointments(filters)
    try:
        appointments = decode_appointments(result)
    except PayloadError as e:
        print_colored(f"Failed to fetch appointments: {e}", Colors.RED)
        return
    print_appointments(filter_by_status(appointments, status))


def do_history(auth: AuthService):
    result = auth.gateway.get_appointment_history()
    try:
        appointments = decode_appointments(result)
    except PayloadError as e:
        print_colored(f"Failed to fetch appointment history: {e}", Colors.RED)
        return
    print_appointments(appointments)


def do_show(auth: AuthService, appointment_id: str):
    result = auth.gateway.get_appointment(appointment_id)
    try:
        detail = decode_appointment_detail(result)
    except PayloadError as e:
        print_colored(f"Failed to fetch appointment details: {e}", Colors.RED)
        return
    patient = detail.patient
    print_colored(f"Appointment #{detail.id} [{detail.status}]", Colors.BOLD)
    print(f"  Token: {detail.token_number or '-'}")
    print(f"  When: {detail.appointment_date or '-'} {detail.scheduled_time or ''}")
    if patient:
        print(f"  Patient: {patient.name or '-'}, age {patient.age or '-'}, {patient.gender or '-'}")
        print(f"  Phone: {patient.phone or '-'}  Email: {patient.email or '-'}")
    print(f"  Reason: {detail.description or '-'}")


def report(result, success_message: str):
    """Print the outcome of a write call."""
    if result.success:
        print_colored(success_message, Colors.GREEN)
    else:
        print_colored(f"Error: {result.error}", Colors.RED)


def do_unavailable(auth: AuthService, prompt: Callable[[str], str]):
    reason = prompt("Reason: ")
    unavailable_from = prompt("From (YYYY-MM-DD HH:MM:SS): ")
    unavailable_until = prompt("Until (YYYY-MM-DD HH:MM:SS): ")
    try:
        validate_unavailability(reason, unavailable_from, unavailable_until)
    except UnavailabilityError as e:
        print_colored(str(e), Colors.RED)
        return
    result = auth.gateway.mark_unavailable(
        reason.strip(), unavailable_from.strip(), unavailable_until.strip()
    )
    report(result, "You have been marked as unavailable.")


def do_password(auth: AuthService, secret: Callable[[str], str]):
    current = secret("Current password: ")
    new = secret("New password: ")
    confirm = secret("Confirm new password: ")
    if new != confirm:
        print_colored("Passwords do not match.", Colors.RED)
        return
    report(auth.gateway.change_password(current, new, confirm), "Password changed.")


def handle_command(
    auth: AuthService,
    line: str,
    prompt: Callable[[str], str] = input,
    secret: Callable[[str], str] = getpass.getpass
) -> bool:
    """
    Run one slash command.

    Returns:
        False when the client should exit, True otherwise
    """
    parts = line.strip().split(maxsplit=1)
    if not parts:
        return True
    cmd = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""

    if cmd in ("/quit", "/exit"):
        print_colored("Goodbye!", Colors.YELLOW)
        return False

    if cmd == "/help":
        for line_text in HELP_TEXT:
            print_colored(line_text, Colors.YELLOW)
        return True

    if cmd == "/login":
        do_login(auth, prompt, secret)
        return True

    if cmd not in ("/logout", "/whoami", "/today", "/appointments", "/find", "/show",
                   "/start", "/end", "/history", "/available", "/unavailable", "/password"):
        print_colored(f"Unknown command: {cmd}. Type /help.", Colors.RED)
        return True

    if not require_login(auth):
        return True

    if cmd in ("/show", "/start", "/end", "/find") and not arg:
        print_colored(f"Usage: {cmd} <value>", Colors.YELLOW)
        return True

    if cmd == "/logout":
        do_logout(auth)
    elif cmd == "/whoami":
        do_whoami(auth)
    elif cmd == "/today":
        do_today(auth)
    elif cmd == "/appointments":
        do_list(auth, {"status": arg} if arg else {}, arg or None)
    elif cmd == "/find":
        do_list(auth, {"patient_name": arg})
    elif cmd == "/show":
        do_show(auth, arg)
    elif cmd == "/start":
        report(auth.gateway.start_appointment(arg), f"Appointment #{arg} started.")
    elif cmd == "/end":
        report(auth.gateway.end_appointment(arg), f"Appointment #{arg} completed.")
    elif cmd == "/history":
        do_history(auth)
    elif cmd == "/available":
        report(auth.gateway.mark_available(), "You are now available for appointments!")
    elif cmd == "/unavailable":
        do_unavailable(auth, prompt)
    elif cmd == "/password":
        do_password(auth, secret)

    return True


def main():
    """Main interactive loop."""
    setup_structured_logging(config.LOG_LEVEL)
    auth = create_auth_service()

    print_colored("=" * 60, Colors.BLUE)
    print_colored("Healto Doctor - Terminal Client", Colors.BOLD)
    print_colored("=" * 60, Colors.BLUE)
    print_colored(f"API: {config.BASE_URL}", Colors.YELLOW)

    if auth.is_authenticated():
        session = auth.current_session()
        name = (session.user_data or {}).get("name", "Doctor")
        print_colored(f"Signed in as Dr. {name}", Colors.GREEN)
    else:
        print_colored("Not signed in. Use /login.", Colors.YELLOW)
    print_colored("Type /help for commands.", Colors.YELLOW)
    print()

    while True:
        try:
            print_colored("> ", Colors.BLUE, end="")
            user_input = input()
        except (KeyboardInterrupt, EOFError):
            print()
            print_colored("Goodbye!", Colors.YELLOW)
            break

        if not user_input.strip():
            continue

        if not handle_command(auth, user_input):
            break


if __name__ == "__main__":
    sys.exit(main())
