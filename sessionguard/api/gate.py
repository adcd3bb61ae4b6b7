"""
Request authentication in front of protected endpoints.

Native apps (``X-Client-Type: APP``) send ``Authorization: Bearer``; browsers
send the ``jwt`` cookie and must not use a Bearer header.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from flask import current_app, g

from sessionguard.api.cookies import read_access_cookie
from sessionguard.api.deps import bearer_token, is_app_client
from sessionguard.core.errors import Unauthorized
from sessionguard.core.extensions import get_token_service
from sessionguard.services.tokens import TokenFailure, TokenService, TokenType

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


class AuthenticationGate:
    """
    Turn a raw access token into a subject or an HTTP 401.

    :param tokens: Token lifecycle service.
    :param fail_open: Accept cryptographically valid tokens while the
        registry is unreachable (revocation is not enforced meanwhile).
    """

    def __init__(self, tokens: TokenService, *, fail_open: bool = False) -> None:
        self.tokens = tokens
        self.fail_open = fail_open

    def authenticate(self, raw_token: str | None) -> str:
        """
        Return the subject of a valid access token.

        :raises Unauthorized: For a missing token or any token failure.
        """
        if not raw_token:
            raise Unauthorized()

        result = self.tokens.validate(raw_token, TokenType.ACCESS)
        if result is TokenFailure.REGISTRY_UNAVAILABLE and self.fail_open:
            subject = self.tokens.codec.extract_subject(raw_token)
            if not isinstance(subject, TokenFailure):
                log.warning("Registry unavailable; accepting token without revocation check")
                result = subject
        if isinstance(result, TokenFailure):
            log.info("Authentication failed", extra={"event": "authenticate", "failure": result.value})
            raise Unauthorized()
        # a deleted account loses access before its tokens expire
        if self.tokens.users.find_subject(result) is None:
            log.info(
                "Authentication failed",
                extra={"event": "authenticate", "failure": TokenFailure.UNKNOWN_SUBJECT.value},
            )
            raise Unauthorized()
        return result


def extract_access_token() -> str | None:
    """
    Pick the access token from the request according to the client type.

    :raises Unauthorized: When a browser request carries a Bearer header.
    """
    if is_app_client():
        return bearer_token()
    if bearer_token() is not None:
        raise Unauthorized()
    return read_access_cookie()


def current_gate() -> AuthenticationGate:
    """Build the gate for the current application."""
    return AuthenticationGate(
        get_token_service(),
        fail_open=bool(current_app.config.get("REGISTRY_FAIL_OPEN", False)),
    )


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token; sets ``g.subject``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = extract_access_token()
        g.subject = current_gate().authenticate(token)
        g.access_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
