"""Typed decoders for doctor API payloads.

Each endpoint has exactly one documented response shape. The caller picks
the decoder that matches the call it made; nothing is guessed at runtime.

Shapes:
- GET /doctor/profile               -> {"success": true, "data": {"doctor": {...}}}
- GET /doctor/appointments          -> {"success": true, "data": [{...}, ...]}
- GET /doctor/appointment-history   -> {"success": true, "data": [{...}, ...]}
- GET /doctor/appointments/:id      -> {"success": true, "data": {..., "patient": {...}}}
- GET /doctor/specializations       -> {"success": true, "data": [{"id": .., "name": ..}]}
"""
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from healto_doctor.models import ApiResult


class PayloadError(Exception):
    """Raised when a result cannot be decoded into the expected shape."""
    pass


class _Payload(BaseModel):
    model_config = ConfigDict(extra="allow")


class DoctorProfile(_Payload):
    """Doctor record returned by GET /doctor/profile."""
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[Union[str, int]] = None
    profile_image: Optional[str] = None
    specialization_ids: Optional[Any] = None
    experience_years: Optional[int] = None
    qualification: Optional[str] = None
    rating: Optional[float] = None
    info: Optional[str] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    address: Optional[str] = None
    dob: Optional[str] = None
    reviews: Optional[Any] = None
    is_available: Optional[bool] = None


class AppointmentSummary(_Payload):
    """Row of an appointment list."""
    id: int
    token_number: Optional[Union[str, int]] = None
    patient_name: Optional[str] = None
    patient_image: Optional[str] = None
    patient_phone: Optional[Union[str, int]] = None
    age: Optional[int] = None
    symptoms: Optional[str] = None
    appointment_date: Optional[str] = None  # "DD Mon, YYYY"
    scheduled_time: Optional[str] = None  # "HH:MM"
    status: Optional[str] = None


class PatientInfo(_Payload):
    name: Optional[str] = None
    age: Optional[int] = None
    phone: Optional[Union[str, int]] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    profile_image: Optional[str] = None


class AppointmentDetail(_Payload):
    """Single appointment with nested patient."""
    id: int
    token_number: Optional[Union[str, int]] = None
    symptoms: Optional[str] = None
    reason_for_visit: Optional[str] = None
    appointment_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    status: Optional[str] = None
    patient: Optional[PatientInfo] = None

    @property
    def description(self) -> Optional[str]:
        return self.reason_for_visit or self.symptoms


class Specialization(_Payload):
    id: int
    name: str


def _payload_data(result: ApiResult) -> Any:
    """Return the server's ``data`` member of a successful envelope."""
    if not result.success:
        raise PayloadError(result.error or "Request failed")
    if not isinstance(result.data, dict):
        raise PayloadError("Response body is not a JSON object")
    if "data" not in result.data:
        raise PayloadError("Response body has no 'data' member")
    return result.data["data"]


def _validate_list(model, items: Any, what: str) -> list:
    if not isinstance(items, list):
        raise PayloadError(f"Expected a list of {what}")
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        raise PayloadError(f"Invalid {what}: {e}") from e


def decode_profile(result: ApiResult) -> DoctorProfile:
    """Decode GET /doctor/profile."""
    data = _payload_data(result)
    doctor = data.get("doctor") if isinstance(data, dict) else None
    if not isinstance(doctor, dict):
        raise PayloadError("No doctor profile data in API response")
    try:
        return DoctorProfile.model_validate(doctor)
    except ValidationError as e:
        raise PayloadError(f"Invalid doctor profile: {e}") from e


def decode_appointments(result: ApiResult) -> List[AppointmentSummary]:
    """Decode appointment lists (list, today, history)."""
    data = _payload_data(result)
    if data is None:
        return []
    return _validate_list(AppointmentSummary, data, "appointments")


def decode_appointment_detail(result: ApiResult) -> AppointmentDetail:
    """Decode GET /doctor/appointments/:id."""
    data = _payload_data(result)
    if not isinstance(data, dict):
        raise PayloadError("No appointment data in API response")
    try:
        return AppointmentDetail.model_validate(data)
    except ValidationError as e:
        raise PayloadError(f"Invalid appointment: {e}") from e


def decode_specializations(result: ApiResult) -> List[Specialization]:
    """Decode GET /doctor/specializations."""
    return _validate_list(Specialization, _payload_data(result), "specializations")
