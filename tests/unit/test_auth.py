"""Test login/logout flow and error message mapping."""
from unittest.mock import Mock

import pytest

from healto_doctor.auth import (
    NETWORK_ERROR_MESSAGE,
    UNEXPECTED_RESPONSE_MESSAGE,
    AuthService,
    login_error_message,
)
from healto_doctor.models import ApiResult, ErrorKind
from healto_doctor.session_store import SessionStore

LOGIN_BODY = {
    "success": True,
    "message": "Login successful",
    "token": "tok-new",
    "data": {"doctor": {"id": 7, "name": "Meera Iyer", "email": "meera@example.com"}},
}


def http_failure(status, body):
    return ApiResult.fail(f"HTTP error! status: {status}, message: {body}", ErrorKind.HTTP, status)


@pytest.fixture
def fake_gateway():
    return Mock()


@pytest.fixture
def auth(fake_gateway, store):
    return AuthService(fake_gateway, store)


class TestLoginErrorMessage:

    @pytest.mark.parametrize("kind", [ErrorKind.TRANSPORT, ErrorKind.TIMEOUT])
    def test_network_errors(self, kind):
        assert login_error_message(ApiResult.fail("x", kind)) == NETWORK_ERROR_MESSAGE

    def test_malformed_response(self):
        result = ApiResult.fail("Invalid JSON in response: x", ErrorKind.MALFORMED_RESPONSE, 200)

        assert login_error_message(result) == UNEXPECTED_RESPONSE_MESSAGE

    def test_401_uses_server_message(self):
        result = http_failure(401, '{"success": false, "message": "Account locked"}')

        assert login_error_message(result) == "Account locked"

    def test_401_default(self):
        assert login_error_message(http_failure(401, "")) == "Invalid username or password"

    def test_400(self):
        assert login_error_message(http_failure(400, "bad")) == "Please check your credentials"

    def test_422(self):
        result = http_failure(422, '{"message": "The username field is required."}')

        assert login_error_message(result) == "Please provide valid username and password"

    def test_other_status(self):
        assert login_error_message(http_failure(503, "<html>down</html>")) == "Server error: 503"

    def test_other_status_with_server_message(self):
        assert login_error_message(http_failure(500, '{"message": "Oops"}')) == "Oops"


class TestLogin:

    def test_success_saves_session(self, auth, fake_gateway, store):
        fake_gateway.login.return_value = ApiResult.ok(LOGIN_BODY, 200)

        outcome = auth.login("  doctor ", " secret ")

        assert outcome.success is True
        assert outcome.message == "Welcome back, Dr. Meera Iyer!"
        fake_gateway.login.assert_called_once_with("doctor", "secret")
        assert store.is_valid() is True
        assert store.get_token() == "tok-new"
        assert store.get_doctor_id() == "7"
        assert auth.is_authenticated() is True
        assert auth.current_session().username == "doctor"

    @pytest.mark.parametrize("username, password", [("", "x"), ("x", ""), ("   ", "   ")])
    def test_blank_credentials_never_call_server(self, auth, fake_gateway, username, password):
        outcome = auth.login(username, password)

        assert outcome.success is False
        assert outcome.message == "Please enter both username and password"
        fake_gateway.login.assert_not_called()

    def test_http_failure(self, auth, fake_gateway, store):
        fake_gateway.login.return_value = http_failure(401, '{"message": "Invalid username or password"}')

        outcome = auth.login("doctor", "wrong")

        assert outcome.success is False
        assert outcome.message == "Invalid username or password"
        assert store.load() is None

    def test_network_failure(self, auth, fake_gateway):
        fake_gateway.login.return_value = ApiResult.fail("Connection refused", ErrorKind.TRANSPORT)

        assert auth.login("doctor", "secret").message == NETWORK_ERROR_MESSAGE

    @pytest.mark.parametrize("body", [
        {"success": False, "message": "nope"},
        {"success": True},
        {"success": True, "token": ""},
        ["not", "an", "object"],
        None,
    ])
    def test_unexpected_payload(self, auth, fake_gateway, store, body):
        fake_gateway.login.return_value = ApiResult.ok(body, 200)

        outcome = auth.login("doctor", "secret")

        assert outcome.success is False
        assert outcome.message == UNEXPECTED_RESPONSE_MESSAGE
        assert store.load() is None

    def test_storage_failure(self, fake_gateway):
        storage = Mock()
        storage.set_item.side_effect = OSError("disk full")
        storage.get_item.return_value = None
        auth = AuthService(fake_gateway, SessionStore(storage))
        fake_gateway.login.return_value = ApiResult.ok(LOGIN_BODY, 200)

        outcome = auth.login("doctor", "secret")

        assert outcome.success is False
        assert outcome.message == "Could not save login session"


class TestLogout:

    def test_logout_calls_server_and_clears(self, fake_gateway, logged_in_store):
        fake_gateway.logout.return_value = ApiResult.ok({"success": True}, 200)
        auth = AuthService(fake_gateway, logged_in_store)

        result = auth.logout()

        assert result.to_dict() == {
            "success": True,
            "data": {"message": "Logout completed successfully"},
        }
        fake_gateway.logout.assert_called_once()
        assert logged_in_store.load() is None

    def test_logout_clears_even_if_server_fails(self, fake_gateway, logged_in_store):
        fake_gateway.logout.return_value = ApiResult.fail("Request timeout", ErrorKind.TIMEOUT)
        auth = AuthService(fake_gateway, logged_in_store)

        assert auth.logout().success is True
        assert logged_in_store.is_valid() is False

    def test_logout_without_session_skips_server(self, auth, fake_gateway):
        assert auth.logout().success is True
        fake_gateway.logout.assert_not_called()

    def test_logout_storage_failure(self, fake_gateway):
        storage = Mock()
        storage.get_item.return_value = None
        storage.remove_item.side_effect = OSError("read-only")
        auth = AuthService(fake_gateway, SessionStore(storage))

        result = auth.logout()

        assert result.to_dict() == {"success": False, "error": "Failed to logout"}
        assert result.error_kind == ErrorKind.STORAGE
