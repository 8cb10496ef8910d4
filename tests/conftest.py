"""Shared test fixtures."""
import json
from unittest.mock import Mock

import pytest
import requests

from healto_doctor import dependencies
from healto_doctor.gateway import ApiGateway
from healto_doctor.session_store import SessionStore
from healto_doctor.storage import MemoryStorage

BASE_URL = "https://api.test/healto/public/api"


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached store/gateway singletons between tests."""
    dependencies._session_store = None
    dependencies._gateway = None
    yield
    dependencies._session_store = None
    dependencies._gateway = None


@pytest.fixture
def valid_session() -> dict:
    """Session record in storage layout."""
    return {
        "isLoggedIn": True,
        "token": "tok-abc123",
        "userData": {"id": 7, "name": "Meera Iyer", "email": "meera@example.com", "phone": "9000000007"},
        "loginTime": "2026-03-05T08:15:00+00:00",
        "username": "doctor",
    }


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def logged_in_store(store, valid_session) -> SessionStore:
    store.save(valid_session)
    return store


@pytest.fixture
def make_response():
    """Build real requests.Response objects."""
    def _create(status: int = 200, body=None, text: str = None):
        response = requests.Response()
        response.status_code = status
        if text is not None:
            response._content = text.encode("utf-8")
        elif body is not None:
            response._content = json.dumps(body).encode("utf-8")
        else:
            response._content = b""
        response.encoding = "utf-8"
        return response
    return _create


@pytest.fixture
def http_session():
    """Mock requests.Session; set .request.return_value / side_effect per test."""
    return Mock(spec=requests.Session)


@pytest.fixture
def gateway(logged_in_store, http_session) -> ApiGateway:
    """Gateway with a valid session and a mocked transport."""
    return ApiGateway(
        session_provider=logged_in_store,
        base_url=BASE_URL,
        http_session=http_session,
    )


@pytest.fixture
def anonymous_gateway(store, http_session) -> ApiGateway:
    """Gateway whose store holds no session."""
    return ApiGateway(
        session_provider=store,
        base_url=BASE_URL,
        http_session=http_session,
    )
