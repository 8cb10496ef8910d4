"""Core data types: persisted session, request form parts and the result envelope."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class ErrorKind(str, Enum):
    """Why a call produced a failure envelope."""
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    HTTP = "http"
    MALFORMED_RESPONSE = "malformed_response"
    STORAGE = "storage"


class ApiResult(BaseModel):
    """
    Uniform result of every gateway call.

    The public contract is ``to_dict()``: either
    ``{"success": True, "data": ...}`` or ``{"success": False, "error": ...}``.
    ``status_code`` and ``error_kind`` are diagnostics for callers that want
    to branch on them.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Any, status_code: Optional[int] = None) -> "ApiResult":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind,
        status_code: Optional[int] = None
    ) -> "ApiResult":
        return cls(success=False, error=error, error_kind=kind, status_code=status_code)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


class Session(BaseModel):
    """
    Persisted login state of one doctor.

    Field names in storage follow the mobile app layout
    (isLoggedIn, token, userData, loginTime, username). Every field is
    optional so partially written records still load; ``is_valid`` decides
    whether the record is usable.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    is_logged_in: Optional[StrictBool] = Field(default=None, alias="isLoggedIn")
    token: Optional[str] = None
    user_data: Optional[Dict[str, Any]] = Field(default=None, alias="userData")
    login_time: Optional[str] = Field(default=None, alias="loginTime")
    username: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """Structural validity; there is no expiry."""
        return (
            self.is_logged_in is True
            and bool(self.token)
            and self.user_data is not None
            and bool(self.user_data.get("id"))
        )

    @property
    def doctor_id(self) -> Optional[str]:
        if not self.user_data or self.user_data.get("id") is None:
            return None
        return str(self.user_data["id"])

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_login_response(
        cls,
        payload: Dict[str, Any],
        username: str,
        now: Optional[datetime] = None
    ) -> "Session":
        """
        Build a session from a successful POST /doctor/login body.

        Expected body: {"success": true, "token": "...", "data": {"doctor": {...}}}.
        When ``data.doctor`` is missing, ``data`` itself is the doctor record.
        """
        data = payload.get("data") or {}
        doctor = data.get("doctor") if isinstance(data, dict) else None
        if doctor is None and isinstance(data, dict):
            doctor = data
        login_time = (now or datetime.now(timezone.utc)).isoformat()
        return cls(
            is_logged_in=True,
            token=payload.get("token"),
            user_data=doctor or None,
            login_time=login_time,
            username=username.strip(),
        )


@dataclass
class FileAttachment:
    """Binary part of a multipart form (e.g. a profile image)."""
    filename: str
    content: Union[bytes, BinaryIO]
    mime_type: str = "application/octet-stream"


@dataclass
class MultipartForm:
    """
    multipart/form-data payload.

    ``fields`` hold text values; ``files`` hold binary attachments.
    """
    fields: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, FileAttachment] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "MultipartForm":
        """Split a flat mapping into text fields and file attachments."""
        form = cls()
        for key, value in data.items():
            if value is None:
                continue
            if isinstance(value, FileAttachment):
                form.files[key] = value
            else:
                form.fields[key] = value
        return form

    def to_request_files(self) -> List[Tuple[str, Tuple[Optional[str], Any, Optional[str]]]]:
        """
        Parts in the shape ``requests`` expects for ``files=``.

        Text fields are sent as filename-less parts so the body stays
        multipart/form-data even when there is no attachment.
        """
        parts: List[Tuple[str, Tuple[Optional[str], Any, Optional[str]]]] = []
        for key, value in self.fields.items():
            parts.append((key, (None, str(value), None)))
        for key, attachment in self.files.items():
            parts.append((key, (attachment.filename, attachment.content, attachment.mime_type)))
        return parts
