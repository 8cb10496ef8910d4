"""Test default wiring."""
from healto_doctor import config, dependencies
from healto_doctor.auth import AuthService


def test_singletons(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "SESSION_DIR", tmp_path)

    store = dependencies.get_session_store()
    gateway = dependencies.get_gateway()

    assert dependencies.get_session_store() is store
    assert dependencies.get_gateway() is gateway
    assert gateway.session_provider is store
    assert store.storage.directory == tmp_path


def test_default_auth_service_uses_singletons(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "SESSION_DIR", tmp_path)

    auth = dependencies.create_auth_service()

    assert isinstance(auth, AuthService)
    assert auth.store is dependencies.get_session_store()
    assert auth.gateway is dependencies.get_gateway()


def test_custom_auth_service(tmp_path):
    auth = dependencies.create_auth_service(session_dir=tmp_path, base_url="http://localhost:5000/api/")

    assert auth.gateway.base_url == "http://localhost:5000/api"
    assert auth.gateway.session_provider is auth.store
    assert auth.store.storage.directory == tmp_path
    assert auth.is_authenticated() is False
