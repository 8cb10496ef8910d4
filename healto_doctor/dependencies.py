"""Wiring of the default store, gateway and auth service."""
from pathlib import Path
from typing import Optional, Union

from healto_doctor import config
from healto_doctor.auth import AuthService
from healto_doctor.gateway import ApiGateway
from healto_doctor.session_store import SessionStore
from healto_doctor.storage import JsonFileStorage

# Initialize singletons
_session_store = None
_gateway = None


def get_session_store() -> SessionStore:
    """Get or create the file-backed session store singleton."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(JsonFileStorage(config.SESSION_DIR))
    return _session_store


def get_gateway() -> ApiGateway:
    """Get or create the gateway singleton bound to the session store."""
    global _gateway
    if _gateway is None:
        _gateway = ApiGateway(session_provider=get_session_store())
    return _gateway


def create_auth_service(
    session_dir: Optional[Union[str, Path]] = None,
    base_url: Optional[str] = None
) -> AuthService:
    """
    Build an AuthService with its own store and gateway.

    Args:
        session_dir: Directory for the session file (default: config.SESSION_DIR)
        base_url: API base URL (default: config.BASE_URL)
    """
    if session_dir is None and base_url is None:
        return AuthService(get_gateway(), get_session_store())

    store = SessionStore(JsonFileStorage(session_dir or config.SESSION_DIR))
    gateway = ApiGateway(session_provider=store, base_url=base_url or config.BASE_URL)
    return AuthService(gateway, store)
