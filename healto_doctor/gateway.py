"""Authenticated access to the Healto doctor API.

Every call returns an ApiResult envelope. Transport errors, timeouts,
non-2xx statuses and unparseable bodies are all converted to a failure
envelope; only programming errors (bad arguments) raise.
"""
import json
import socket
import time
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

import requests
import urllib3
from urllib3.exceptions import ReadTimeoutError

from healto_doctor import config
from healto_doctor.config import Endpoint
from healto_doctor.http_client import create_http_session
from healto_doctor.logging_config import generate_request_id, get_logger
from healto_doctor.models import ApiResult, ErrorKind, FileAttachment, MultipartForm
from healto_doctor.session_store import SessionProvider

logger = get_logger(__name__)

TIMEOUT_MESSAGE = "Request timeout"
DEFAULT_ERROR_MESSAGE = "An error occurred while making the request"

READ_CHUNK_SIZE = 8192


class DeadlineExceeded(Exception):
    """Raised when a response is not fully received before its deadline."""
    pass


def _read_body(response: requests.Response, deadline: float) -> bytes:
    """
    Read the whole body of a streamed response before ``deadline``.

    Every socket read is bounded by the time left and the deadline is
    checked between reads, so a server trickling bytes cannot keep the
    call open past it.

    Raises:
        DeadlineExceeded: If the deadline passes first
    """
    raw = response.raw
    if raw is None:
        # Response built in memory, nothing left on the wire
        return response.content

    connection = getattr(raw, "connection", None)
    sock = getattr(connection, "sock", None)
    chunks = []
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DeadlineExceeded()
        if sock is not None:
            sock.settimeout(remaining)
        chunk = raw.read1(READ_CHUNK_SIZE, decode_content=True)
        if not chunk:
            # Fully read: the connection can go back to the pool
            raw.release_conn()
            return b"".join(chunks)
        chunks.append(chunk)


def _close(response: requests.Response):
    """Drop the connection unless the body was built in memory."""
    if response.raw is not None:
        response.close()


def _query_value(value: Any) -> Any:
    # Booleans go out as the JSON literals the server parses
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def build_query_string(filters: Optional[Mapping[str, Any]]) -> str:
    """
    Build the query string for GET /doctor/appointments.

    Only known filter keys with a value are emitted, in a fixed order.
    ``None`` and ``""`` mean "no filter"; any other value is sent, so
    ``page=0`` or ``False`` reach the server and are validated there
    (the mobile app dropped every falsy value, which made ``0`` unsendable).
    Booleans are rendered as ``true``/``false``.

    Example:
        >>> build_query_string({"status": "scheduled", "patient_name": "Ravi"})
        'status=scheduled&patient_name=Ravi'
    """
    if not filters:
        return ""

    pairs = [
        (key, _query_value(filters[key]))
        for key in config.APPOINTMENT_FILTER_KEYS
        if filters.get(key) is not None and filters.get(key) != ""
    ]
    return urlencode(pairs)


class ApiGateway:
    """
    HTTP gateway for the doctor endpoints.

    The session provider is injected so tests can hand in fake sessions.
    A 401 on an authenticated call invalidates the session before the error
    is returned.
    """

    def __init__(
        self,
        session_provider: Optional[SessionProvider] = None,
        base_url: str = config.BASE_URL,
        timeout: float = config.REQUEST_TIMEOUT,
        upload_timeout: float = config.UPLOAD_TIMEOUT,
        http_session: Optional[requests.Session] = None,
        invalidate_on_unauthorized: bool = True
    ):
        """
        Initialize gateway.

        Args:
            session_provider: Source of the bearer token (None = anonymous)
            base_url: API origin and path prefix
            timeout: Seconds allowed for JSON calls
            upload_timeout: Seconds allowed for multipart calls
            http_session: requests.Session to reuse (default: pooled session)
            invalidate_on_unauthorized: Clear the session on HTTP 401
        """
        self.session_provider = session_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.http_session = http_session or create_http_session()
        self.invalidate_on_unauthorized = invalidate_on_unauthorized

    def _auth_headers(self) -> Dict[str, str]:
        if self.session_provider is None:
            return {}
        token = self.session_provider.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def request(
        self,
        endpoint: Union[Endpoint, str],
        method: str = "POST",
        body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        *,
        form: Optional[MultipartForm] = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
        timeout: Optional[float] = None
    ) -> ApiResult:
        """
        Issue one HTTP call and wrap the outcome.

        The timeout is a wall-clock deadline for the whole call (connect,
        headers and body). When it passes, the connection is closed and the
        call fails with "Request timeout", however the server behaves
        afterwards.

        Args:
            endpoint: Endpoint or already-substituted path ("/doctor/...")
            method: HTTP method
            body: JSON-serializable payload (POST/PUT/PATCH only)
            headers: Extra headers, applied last
            form: Multipart payload, exclusive with body
            params: Extra query parameters
            authenticated: Attach the bearer token when one is available
            timeout: Override the timeout for this call

        Returns:
            ApiResult envelope

        Raises:
            ValueError: If both body and form are given, or the path still
                contains a ``:placeholder``
        """
        if body is not None and form is not None:
            raise ValueError("JSON body and multipart form are mutually exclusive")

        path = endpoint.value if isinstance(endpoint, Endpoint) else endpoint
        if any(segment.startswith(":") for segment in path.split("?")[0].split("/")):
            raise ValueError(f"Unsubstituted path parameter in {path!r}")

        method = method.upper()
        url = config.get_api_url(path, self.base_url)
        request_id = generate_request_id()
        log = logger.bind(request_id=request_id, method=method, path=path)

        request_headers = {"Accept": "application/json", "X-Request-ID": request_id}
        if authenticated:
            request_headers.update(self._auth_headers())

        kwargs: Dict[str, Any] = {}
        effective_timeout = timeout or self.timeout

        if (body is not None or form is not None) and method not in config.BODY_METHODS:
            log.warning("request_body_ignored")
        elif form is not None:
            # requests sets multipart Content-Type with the boundary
            kwargs["files"] = form.to_request_files()
            effective_timeout = timeout or self.upload_timeout
        elif body is not None:
            request_headers["Content-Type"] = "application/json"
            kwargs["json"] = body

        if headers:
            request_headers.update(headers)

        log.info(
            "api_request",
            authenticated="Authorization" in request_headers,
            multipart="files" in kwargs,
        )

        deadline = time.monotonic() + effective_timeout
        try:
            response = self.http_session.request(
                method,
                url,
                headers=request_headers,
                params=params,
                timeout=effective_timeout,
                stream=True,
                **kwargs
            )
        except requests.exceptions.Timeout:
            log.warning("api_timeout", timeout=effective_timeout)
            return ApiResult.fail(TIMEOUT_MESSAGE, ErrorKind.TIMEOUT)
        except requests.exceptions.RequestException as e:
            log.error("api_transport_error", error=str(e))
            return ApiResult.fail(str(e) or DEFAULT_ERROR_MESSAGE, ErrorKind.TRANSPORT)

        try:
            content = _read_body(response, deadline)
        except (DeadlineExceeded, ReadTimeoutError, socket.timeout):
            log.warning("api_timeout", timeout=effective_timeout, phase="body")
            return ApiResult.fail(TIMEOUT_MESSAGE, ErrorKind.TIMEOUT)
        except (urllib3.exceptions.HTTPError, requests.exceptions.RequestException, OSError) as e:
            log.error("api_transport_error", error=str(e), phase="body")
            return ApiResult.fail(str(e) or DEFAULT_ERROR_MESSAGE, ErrorKind.TRANSPORT)
        finally:
            _close(response)

        status = response.status_code
        log = log.bind(status=status)

        if not 200 <= status < 300:
            error_text = content.decode(response.encoding or "utf-8", errors="replace")
            log.warning("api_http_error", body=error_text[:500])
            if status == 401 and authenticated:
                self._handle_unauthorized()
            return ApiResult.fail(
                f"HTTP error! status: {status}, message: {error_text}",
                ErrorKind.HTTP,
                status_code=status,
            )

        if not content:
            log.info("api_response", empty=True)
            return ApiResult.ok(None, status_code=status)

        try:
            data = json.loads(content)
        except ValueError as e:
            log.error("api_malformed_response", error=str(e))
            return ApiResult.fail(
                f"Invalid JSON in response: {e}",
                ErrorKind.MALFORMED_RESPONSE,
                status_code=status,
            )

        log.info("api_response")
        return ApiResult.ok(data, status_code=status)

    def _handle_unauthorized(self):
        if self.session_provider is None or not self.invalidate_on_unauthorized:
            return
        self.session_provider.invalidate()

    # Authentication

    def login(self, username: str, password: str) -> ApiResult:
        """POST /doctor/login (never sends a bearer token)."""
        return self.request(
            Endpoint.LOGIN,
            "POST",
            body={"username": username, "password": password},
            authenticated=False,
        )

    def logout(self) -> ApiResult:
        return self.request(Endpoint.LOGOUT, "POST")

    # Profile

    def get_profile(self) -> ApiResult:
        return self.request(Endpoint.PROFILE, "GET")

    def get_edit_data(self, doctor_id: Union[str, int]) -> ApiResult:
        return self.request(Endpoint.EDIT, "GET", params={"doctor_id": doctor_id})

    def update_profile(self, data: Union[Dict[str, Any], MultipartForm]) -> ApiResult:
        """
        POST /doctor/update-profile.

        A MultipartForm, or a dict holding a FileAttachment (profile image),
        is sent as multipart/form-data; any other dict is sent as JSON.
        """
        if isinstance(data, MultipartForm):
            return self.request(Endpoint.UPDATE_PROFILE, "POST", form=data)

        if any(isinstance(value, FileAttachment) for value in data.values()):
            return self.request(
                Endpoint.UPDATE_PROFILE, "POST", form=MultipartForm.from_mapping(data)
            )

        return self.request(Endpoint.UPDATE_PROFILE, "POST", body=data)

    def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str
    ) -> ApiResult:
        return self.request(
            Endpoint.CHANGE_PASSWORD,
            "POST",
            body={
                "current_password": current_password,
                "new_password": new_password,
                "new_password_confirmation": confirm_password,
            },
        )

    def get_specializations(self) -> ApiResult:
        return self.request(Endpoint.SPECIALIZATIONS, "GET")

    # Appointments

    def get_dashboard(self) -> ApiResult:
        return self.request(Endpoint.DASHBOARD, "GET")

    def get_today_appointments(self) -> ApiResult:
        return self.request(Endpoint.TODAY_APPOINTMENTS, "GET")

    def list_appointments(self, filters: Optional[Mapping[str, Any]] = None) -> ApiResult:
        """
        GET /doctor/appointments with optional filters.

        Args:
            filters: Any of status, date, start_date, end_date, patient_name,
                sort_by, page, per_page
        """
        query = build_query_string(filters)
        path = Endpoint.APPOINTMENTS.value
        if query:
            path = f"{path}?{query}"
        return self.request(path, "GET")

    def get_appointment(self, appointment_id: Union[str, int]) -> ApiResult:
        return self.request(Endpoint.APPOINTMENT_DETAILS.path(id=appointment_id), "GET")

    def start_appointment(self, appointment_id: Union[str, int]) -> ApiResult:
        return self.request(Endpoint.START_APPOINTMENT.path(id=appointment_id), "POST")

    def end_appointment(self, appointment_id: Union[str, int]) -> ApiResult:
        return self.request(Endpoint.END_APPOINTMENT.path(id=appointment_id), "POST")

    def get_appointment_history(self) -> ApiResult:
        return self.request(Endpoint.APPOINTMENT_HISTORY, "GET")

    # Availability

    def mark_unavailable(
        self,
        reason: str,
        unavailable_from: str,
        unavailable_until: str
    ) -> ApiResult:
        """
        POST /doctor/mark-unavailable as multipart/form-data.

        Args:
            reason: Free-text reason shown to patients
            unavailable_from: "YYYY-MM-DD HH:MM:SS"
            unavailable_until: "YYYY-MM-DD HH:MM:SS"
        """
        form = MultipartForm(fields={
            "reason": reason,
            "unavailable_from": unavailable_from,
            "unavailable_until": unavailable_until,
        })
        return self.request(Endpoint.MARK_UNAVAILABLE, "POST", form=form)

    def mark_available(self) -> ApiResult:
        return self.request(Endpoint.MARK_AVAILABLE, "POST")

    def mark_inactive(
        self,
        doctor_id: Union[str, int],
        start_date: str,
        end_date: str,
        content: str,
        clinic_id: int = 1
    ) -> ApiResult:
        return self.request(
            Endpoint.INACTIVE,
            "POST",
            body={
                "doctor_id": doctor_id,
                "start_date": start_date,
                "end_date": end_date,
                "content": content,
                "clinic_id": clinic_id,
            },
        )
