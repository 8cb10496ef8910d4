"""Tests for structured logging."""
import logging

import pytest
import structlog
from flask import Flask, request

from healto_doctor.logging_config import (
    REDACTED,
    RequestIDMiddleware,
    generate_request_id,
    get_logger,
    redact_credentials,
    setup_structured_logging,
)


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def app():
    app = Flask(__name__)

    @app.route('/test')
    def test_route():
        return "OK"

    app.wsgi_app = RequestIDMiddleware(app.wsgi_app)
    return app


class TestStructuredLogging:
    """Test structured logging with request IDs."""

    def test_setup_configures_structlog(self):
        """Should configure structlog processors."""
        setup_structured_logging(log_level="INFO")
        logger = get_logger(__name__)

        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'warning')
        assert structlog.is_configured()

    def test_logger_methods_work(self):
        """Should have working log methods."""
        setup_structured_logging(log_level="DEBUG")
        logger = get_logger(__name__)

        # These should not raise
        logger.info("test_info", doctor_id="7")
        logger.bind(request_id="req-abc").warning("test_warning")
        logger.error("test_error")

    def test_unknown_level_rejected(self):
        with pytest.raises(AttributeError):
            setup_structured_logging(log_level="CHATTY")

    def test_generate_request_id_format(self):
        """Should generate request IDs with correct format."""
        request_id = generate_request_id()

        assert request_id.startswith("req-")
        assert len(request_id) == 16  # "req-" (4) + 12 hex chars
        int(request_id[4:], 16)

        assert request_id != generate_request_id()


class TestRequestIDMiddleware:

    def test_adds_header(self, app):
        """Should add X-Request-ID header to responses."""
        with app.test_client() as client:
            response = client.get('/test')

        request_id = response.headers['X-Request-ID']
        assert request_id.startswith('req-')
        assert len(request_id) == 16

    def test_reuses_incoming_id(self, app):
        """A client-supplied request id is echoed back."""
        with app.test_client() as client:
            response = client.get('/test', headers={'X-Request-ID': 'req-fromclient'})

        assert response.headers['X-Request-ID'] == 'req-fromclient'

    def test_id_visible_to_app(self):
        app = Flask(__name__)

        @app.route('/echo')
        def echo():
            return request.environ['REQUEST_ID']

        app.wsgi_app = RequestIDMiddleware(app.wsgi_app)

        with app.test_client() as client:
            response = client.get('/echo')

        assert response.get_data(as_text=True) == response.headers['X-Request-ID']


def test_stdlib_level_applied():
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = list(root.handlers)
    for handler in previous_handlers:
        root.removeHandler(handler)
    try:
        setup_structured_logging(log_level="ERROR")
        assert root.level == logging.ERROR
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)


class TestRedaction:
    """Credentials are masked before rendering."""

    def test_top_level_keys(self):
        event = redact_credentials(None, "info", {
            "event": "login", "password": "secret", "Authorization": "Bearer tok", "doctor_id": "7",
        })

        assert event == {
            "event": "login", "password": REDACTED, "Authorization": REDACTED, "doctor_id": "7",
        }

    def test_nested_headers_and_bodies(self):
        event = redact_credentials(None, "debug", {
            "event": "api_request",
            "headers": {"Authorization": "Bearer tok", "Accept": "application/json"},
            "body": {"current_password": "a", "new_password": "b", "meta": {"token": "t"}},
        })

        assert event["headers"] == {"Authorization": REDACTED, "Accept": "application/json"}
        assert event["body"] == {
            "current_password": REDACTED, "new_password": REDACTED, "meta": {"token": REDACTED},
        }

    def test_presence_flags_are_kept(self):
        event = redact_credentials(None, "info", {"event": "session_saved", "token_present": True})

        assert event["token_present"] is True

    def test_processor_is_configured(self):
        setup_structured_logging(log_level="INFO")

        processors = structlog.get_config()["processors"]
        assert redact_credentials in processors
        assert processors.index(redact_credentials) < len(processors) - 1

    def test_rendered_output_has_no_token(self, capsys):
        root = logging.getLogger()
        previous_level = root.level
        saved = list(root.handlers)
        for handler in saved:
            root.removeHandler(handler)
        try:
            setup_structured_logging(log_level="INFO")
            get_logger("redaction-check").info("api_request", headers={"Authorization": "Bearer tok-abc123"})
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in saved:
                root.addHandler(handler)
            root.setLevel(previous_level)

        err = capsys.readouterr().err
        assert "tok-abc123" not in err
        assert REDACTED in err
