"""HttpOnly cookie transport for browser clients."""

from __future__ import annotations

from flask import Response, current_app, request

from sessionguard.core.extensions import get_token_settings
from sessionguard.services.tokens import TokenPair


def _cookie_options() -> dict:
    config = current_app.config
    return {
        "secure": bool(config.get("JWT_COOKIE_SECURE", True)),
        "httponly": True,
        "samesite": config.get("JWT_COOKIE_SAMESITE", "Lax"),
    }


def access_cookie_name() -> str:
    return current_app.config.get("JWT_ACCESS_COOKIE_NAME", "jwt")


def refresh_cookie_name() -> str:
    return current_app.config.get("JWT_REFRESH_COOKIE_NAME", "refresh_token")


def read_access_cookie() -> str | None:
    return request.cookies.get(access_cookie_name())


def read_refresh_cookie() -> str | None:
    return request.cookies.get(refresh_cookie_name())


def set_access_cookie(response: Response, token: str) -> Response:
    """Set the access cookie; ``Max-Age`` equals the access TTL."""
    response.set_cookie(
        access_cookie_name(),
        token,
        max_age=get_token_settings().access_ttl_seconds,
        path=current_app.config.get("JWT_ACCESS_COOKIE_PATH", "/"),
        **_cookie_options(),
    )
    return response


def set_refresh_cookie(response: Response, token: str) -> Response:
    """Set the refresh cookie, scoped to the API path."""
    response.set_cookie(
        refresh_cookie_name(),
        token,
        max_age=get_token_settings().refresh_ttl_seconds,
        path=current_app.config.get("JWT_REFRESH_COOKIE_PATH", "/api"),
        **_cookie_options(),
    )
    return response


def set_token_cookies(response: Response, pair: TokenPair) -> Response:
    set_access_cookie(response, pair.access_token)
    return set_refresh_cookie(response, pair.refresh_token)


def unset_token_cookies(response: Response) -> Response:
    """Expire both cookies on the client."""
    options = _cookie_options()
    response.delete_cookie(
        access_cookie_name(), path=current_app.config.get("JWT_ACCESS_COOKIE_PATH", "/"), **options
    )
    response.delete_cookie(
        refresh_cookie_name(),
        path=current_app.config.get("JWT_REFRESH_COOKIE_PATH", "/api"),
        **options,
    )
    return response
