"""Login and logout flow for the doctor client."""
import json
from dataclasses import dataclass
from typing import Optional

from healto_doctor.gateway import ApiGateway
from healto_doctor.logging_config import get_logger
from healto_doctor.models import ApiResult, ErrorKind, Session
from healto_doctor.session_store import SessionStore

logger = get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response format from server"
LOGOUT_MESSAGE = "Logout completed successfully"


@dataclass
class LoginOutcome:
    """Result of a login attempt."""
    success: bool
    message: str
    session: Optional[Session] = None


def _server_message(result: ApiResult) -> Optional[str]:
    """Extract ``message`` from the JSON error body embedded in a failure."""
    if not result.error or "message: " not in result.error:
        return None
    body = result.error.split("message: ", 1)[1]
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return None


def login_error_message(result: ApiResult) -> str:
    """
    Translate a failed login envelope into a message for the doctor.

    Args:
        result: Failure envelope from ApiGateway.login

    Returns:
        User-facing message
    """
    if result.error_kind in (ErrorKind.TRANSPORT, ErrorKind.TIMEOUT):
        return NETWORK_ERROR_MESSAGE
    if result.error_kind == ErrorKind.MALFORMED_RESPONSE:
        return UNEXPECTED_RESPONSE_MESSAGE

    status = result.status_code
    server_message = _server_message(result)

    if status == 401:
        return server_message or "Invalid username or password"
    if status == 400:
        return server_message or "Please check your credentials"
    if status == 422:
        return "Please provide valid username and password"
    if status is not None:
        return server_message or f"Server error: {status}"
    return result.error or "An unexpected error occurred"


class AuthService:
    """
    Drives the session state machine.

    Anonymous -> Authenticated on a successful login (session saved).
    Authenticated -> Anonymous on logout (store cleared) or when the gateway
    sees a 401 and invalidates the session.
    """

    def __init__(self, gateway: ApiGateway, store: SessionStore):
        self.gateway = gateway
        self.store = store

    def is_authenticated(self) -> bool:
        return self.store.is_valid()

    def current_session(self) -> Optional[Session]:
        return self.store.load()

    def login(self, username: str, password: str) -> LoginOutcome:
        """
        Authenticate and persist the session.

        Args:
            username: Doctor username (trimmed)
            password: Password (trimmed)

        Returns:
            LoginOutcome with the saved session on success
        """
        username = (username or "").strip()
        password = (password or "").strip()
        if not username or not password:
            return LoginOutcome(False, "Please enter both username and password")

        result = self.gateway.login(username, password)
        if not result.success:
            message = login_error_message(result)
            logger.warning("login_failed", status=result.status_code, reason=message)
            return LoginOutcome(False, message)

        payload = result.data if isinstance(result.data, dict) else {}
        if payload.get("success") is not True or not payload.get("token"):
            logger.warning("login_unexpected_payload")
            return LoginOutcome(False, UNEXPECTED_RESPONSE_MESSAGE)

        session = Session.from_login_response(payload, username)
        if not self.store.save(session):
            return LoginOutcome(False, "Could not save login session")

        if session.doctor_id:
            self.store.save_doctor_id(session.doctor_id)

        name = (session.user_data or {}).get("name") or "Doctor"
        logger.info("login_succeeded", doctor_id=session.doctor_id)
        return LoginOutcome(True, f"Welcome back, Dr. {name}!", session)

    def logout(self) -> ApiResult:
        """
        Log out on the server (best effort) and clear local state.

        The local session is cleared even when the server call fails.
        """
        if self.store.get_token():
            server_result = self.gateway.logout()
            if not server_result.success:
                logger.warning("server_logout_failed", error=server_result.error)

        if not self.store.clear():
            return ApiResult.fail("Failed to logout", ErrorKind.STORAGE)

        logger.info("logout_completed")
        return ApiResult.ok({"message": LOGOUT_MESSAGE})
