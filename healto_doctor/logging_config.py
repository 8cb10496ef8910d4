"""Structured logging for the doctor client.

Every gateway call binds a request id (also sent as ``X-Request-ID``) so a
client log line can be matched with the server's. Credentials never reach
the output: bearer tokens, passwords and ``Authorization`` headers are
masked by ``redact_credentials`` before rendering, wherever they were bound.
"""
import logging
import sys
import uuid
from typing import Any, Dict

import structlog

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({
    "authorization",
    "token",
    "password",
    "current_password",
    "new_password",
    "new_password_confirmation",
})


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _mask(v)
            for k, v in value.items()
        }
    return value


def redact_credentials(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor: mask credential values, including inside bound dicts."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def setup_structured_logging(log_level: str = "WARNING"):
    """
    Route structlog through stdlib logging as JSON lines on stderr.

    stderr keeps log output apart from the terminal client's own prints.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_credentials,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper())
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def generate_request_id() -> str:
    """Request id sent as X-Request-ID: "req-" + 12 hex chars."""
    return f"req-{uuid.uuid4().hex[:12]}"


class RequestIDMiddleware:
    """
    WSGI middleware for the mock API.

    Echoes the caller's X-Request-ID (or a fresh one) on every response and
    exposes it to views as ``environ["REQUEST_ID"]``.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        request_id = environ.get("HTTP_X_REQUEST_ID") or generate_request_id()
        environ['REQUEST_ID'] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append(('X-Request-ID', request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)
