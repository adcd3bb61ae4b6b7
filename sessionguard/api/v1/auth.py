"""Authentication endpoints: sign-up, login, refresh and logout."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, g, request

from sessionguard.api.cookies import (
    read_refresh_cookie,
    set_access_cookie,
    set_refresh_cookie,
    set_token_cookies,
    unset_token_cookies,
)
from sessionguard.api.deps import (
    basic_credentials,
    bearer_token,
    is_app_client,
    json_body,
    json_response,
    timing,
)
from sessionguard.api.gate import require_auth
from sessionguard.core.errors import Conflict, Unauthorized
from sessionguard.core.extensions import get_account_service, get_token_service, limiter
from sessionguard.schemas import CredentialsSchema, SignUpSchema, TokenResponseSchema, UserSchema
from sessionguard.services._shared.errors import ConflictError, InvalidCredentialsError
from sessionguard.services._shared.ports import UserRecord
from sessionguard.services.accounts import LoginIn, SignUpIn
from sessionguard.services.tokens import TokenFailure, TokenPair, TokenType

bp = Blueprint("auth", __name__)

credentials_schema = CredentialsSchema()
signup_schema = SignUpSchema()
token_schema = TokenResponseSchema()
user_schema = UserSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _token_body(pair: TokenPair) -> dict:
    return token_schema.dump(
        {
            "access_token": pair.access_token,
            "expires_in": get_token_service().remaining_seconds(pair.access_token),
            "refresh_token": pair.refresh_token,
        }
    )


def _issue_response(user: UserRecord, pair: TokenPair, *, status: int = 200) -> Response:
    """Apps get the tokens in the body; browsers get HttpOnly cookies."""
    if is_app_client():
        return json_response(_token_body(pair), status=status)
    return set_token_cookies(json_response({"data": user_schema.dump(user)}, status=status), pair)


def _refresh_token_from_request() -> str | None:
    if is_app_client():
        return bearer_token()
    return read_refresh_cookie()


@bp.post("/signup")
@limiter.limit(_login_rate_limit)
@timing
def signup():
    """Register with Basic credentials plus a JSON ``nickname``."""

    data = signup_schema.load({**basic_credentials(), "nickname": json_body().get("nickname")})
    try:
        user, pair = get_account_service().sign_up(SignUpIn(**data))
    except ConflictError as exc:
        raise Conflict("Email already registered") from exc
    return _issue_response(user, pair, status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate Basic credentials and issue a token pair."""

    data = credentials_schema.load(basic_credentials())
    try:
        user, pair = get_account_service().login(LoginIn(**data))
    except InvalidCredentialsError as exc:
        raise Unauthorized("Invalid credentials") from exc
    return _issue_response(user, pair)


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access token."""

    token = _refresh_token_from_request()
    if not token:
        raise Unauthorized()
    result = get_token_service().refresh_access_token(token)
    if isinstance(result, TokenFailure):
        raise Unauthorized()
    if is_app_client():
        return json_response(_token_body(result))

    response = json_response(
        {"expires_in": get_token_service().remaining_seconds(result.access_token)}
    )
    set_access_cookie(response, result.access_token)
    if result.refresh_token != token:
        set_refresh_cookie(response, result.refresh_token)
    return response


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the caller's tokens; ``?all=1`` logs out every session."""

    tokens = get_token_service()
    if request.args.get("all", "").lower() in {"1", "true", "yes"}:
        tokens.revoke_all(g.subject)
    else:
        tokens.revoke(g.access_token)
        if is_app_client():
            refresh_token = json_body().get("refresh_token")
        else:
            refresh_token = read_refresh_cookie()
        # only the caller's own refresh token may be revoked here
        if refresh_token and tokens.validate(refresh_token, TokenType.REFRESH) == g.subject:
            tokens.revoke(refresh_token)

    return unset_token_cookies(Response(status=204))
