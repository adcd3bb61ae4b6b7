"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from sessionguard.core.errors import BadRequest

F = TypeVar("F", bound=Callable[..., Any])

CLIENT_TYPE_HEADER = "X-Client-Type"
APP_CLIENT = "APP"


def is_app_client() -> bool:
    """Return ``True`` for native app requests (``X-Client-Type: APP``)."""

    return request.headers.get(CLIENT_TYPE_HEADER, "").strip().upper() == APP_CLIENT


def bearer_token() -> str | None:
    """Return the token of an ``Authorization: Bearer`` header, if any."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def basic_credentials() -> dict[str, str]:
    """Decode ``Authorization: Basic`` into ``{"email", "password"}``.

    :raises BadRequest: When the header is missing or not Basic.
    """

    auth = request.authorization
    if auth is None or auth.type != "basic" or auth.username is None:
        raise BadRequest("Basic authentication is required")
    return {"email": auth.username, "password": auth.password or ""}


def json_body() -> dict[str, Any]:
    """Return the JSON object body, or an empty dict for anything else."""

    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
