"""
JSON logging for the session service.

Records carry the request id, the client type and, once the authentication
gate has run, the subject. Token material never reaches the output:
JWT-shaped substrings are masked and credential headers are redacted.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# ``extra={...}`` keys copied into the payload
AUDIT_KEYS = ("event", "failure", "endpoint", "elapsed_ms", "status")

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})
MASK = "[redacted]"
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")

log = logging.getLogger(__name__)


def mask_tokens(text: str) -> str:
    """Replace anything shaped like a compact JWT with :data:`MASK`."""
    return _JWT_RE.sub(MASK, text)


def redact_headers(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> dict[str, str]:
    """
    Copy headers with credential values hidden.

    ``Authorization`` keeps its scheme (``Bearer [redacted]``) so failed
    requests can still be told apart.
    """
    items = headers.items() if isinstance(headers, Mapping) else headers
    out: dict[str, str] = {}
    for name, value in items:
        lowered = name.lower()
        if lowered not in SENSITIVE_HEADERS:
            out[name] = value
            continue
        scheme, sep, _ = value.partition(" ")
        out[name] = f"{scheme} {MASK}" if lowered == "authorization" and sep else MASK
    return out


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects with tokens masked."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": mask_tokens(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
            "client_type": getattr(record, "client_type", None),
            "subject": getattr(record, "subject", None),
        }
        if record.exc_info:
            payload["exc_info"] = mask_tokens(self.formatException(record.exc_info))
        for key in AUDIT_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        headers = getattr(record, "headers", None)
        if headers is not None:
            payload["headers"] = redact_headers(headers)
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    """Attach request id, client type and subject to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = ensure_request_id()
            record.client_type = "app" if request.headers.get("X-Client-Type", "").upper() == "APP" else "web"
            record.subject = g.get("subject")
        else:
            record.request_id = None
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if not has_request_context():
        return str(uuid4())
    if "request_id" not in g:
        incoming = next((request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), None)
        g.request_id = incoming or str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send JSON records to stdout from the root logger."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed request ids, echo them back and emit a redacted access record."""

    app.logger.addFilter(RequestContextFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _finish(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        if log.isEnabledFor(logging.DEBUG):
            log.debug(
                "%s %s",
                request.method,
                request.path,
                extra={
                    "event": "http",
                    "status": response.status_code,
                    "headers": redact_headers(request.headers.items()),
                },
            )
        return response


__all__ = [
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "mask_tokens",
    "redact_headers",
]
