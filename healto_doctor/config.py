"""Configuration for the Healto doctor client.

Endpoint catalog, timeouts and storage keys live here. Values that differ per
machine (base URL, session directory, log level) can be overridden through
environment variables or a local .env file.
"""
import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# API Configuration
DEFAULT_BASE_URL = "https://spidermart.in/healto/public/api"
BASE_URL = os.getenv("HEALTO_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/")

# Seconds
REQUEST_TIMEOUT = 10
UPLOAD_TIMEOUT = 30

# Only these HTTP methods carry a request body
BODY_METHODS = ("POST", "PUT", "PATCH")

# Persisted session layout
SESSION_KEY = "doctorLoginSession"
LEGACY_DOCTOR_ID_KEY = "doctor_id"
SESSION_DIR = Path(
    os.getenv("HEALTO_SESSION_DIR", Path.home() / ".healto_doctor")
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

# Query keys accepted by GET /doctor/appointments, in emission order
APPOINTMENT_FILTER_KEYS = (
    "status",
    "date",
    "start_date",
    "end_date",
    "patient_name",
    "sort_by",
    "page",
    "per_page",
)


class Endpoint(str, Enum):
    """Doctor API endpoints (path templates relative to BASE_URL)."""
    LOGIN = "/doctor/login"
    LOGOUT = "/doctor/logout"
    PROFILE = "/doctor/profile"
    EDIT = "/doctor/edit"
    UPDATE_PROFILE = "/doctor/update-profile"
    CHANGE_PASSWORD = "/doctor/change-password"
    DASHBOARD = "/doctor/dashboard"
    SPECIALIZATIONS = "/doctor/specializations"
    TODAY_APPOINTMENTS = "/doctor/today-appointments"
    APPOINTMENTS = "/doctor/appointments"
    APPOINTMENT_DETAILS = "/doctor/appointments/:id"
    START_APPOINTMENT = "/doctor/appointments/:id/start"
    END_APPOINTMENT = "/doctor/appointments/:id/end"
    MARK_UNAVAILABLE = "/doctor/mark-unavailable"
    MARK_AVAILABLE = "/doctor/mark-available"
    INACTIVE = "/doctor/inactive"
    APPOINTMENT_HISTORY = "/doctor/appointment-history"

    def path(self, **params) -> str:
        """
        Substitute ``:name`` placeholders in the template.

        Raises:
            KeyError: If the template has a placeholder with no value
        """
        segments = []
        for segment in self.value.split("/"):
            if segment.startswith(":"):
                segment = str(params[segment[1:]])
            segments.append(segment)
        return "/".join(segments)


def get_api_url(path: str, base_url: str = BASE_URL) -> str:
    """Join base URL and endpoint path."""
    return f"{base_url}{path}"
