"""Browser flows: credentials via Basic, tokens via HttpOnly cookies."""

from __future__ import annotations

from tests.helpers.assertions import assert_problem
from tests.helpers.auth import app_headers, basic_header
from tests.helpers.http import cookie_value, set_cookie_headers

EMAIL = "test@example.com"
PASSWORD = "password123"


def _signup(client, email: str = EMAIL, nickname: str = "tester"):
    return client.post(
        "/api/v1/auth/signup",
        headers=basic_header(email, PASSWORD),
        json={"nickname": nickname},
    )


def test_signup_sets_cookies(client) -> None:
    resp = _signup(client)

    assert resp.status_code == 201
    assert resp.get_json()["data"] == {"email": EMAIL, "nickname": "tester"}
    cookies = set_cookie_headers(resp)
    assert "HttpOnly" in cookies["jwt"]
    assert "Max-Age=86400" in cookies["jwt"]
    assert "Path=/api" in cookies["refresh_token"]
    assert "Max-Age=1209600" in cookies["refresh_token"]
    assert "access_token" not in resp.get_json()


def test_signup_then_me_with_cookie(client) -> None:
    _signup(client)

    resp = client.get("/api/v1/me")

    assert resp.status_code == 200
    assert resp.get_json() == {"email": EMAIL}


def test_login_sets_cookie(client) -> None:
    _signup(client)
    client.delete_cookie("jwt")

    resp = client.post("/api/v1/auth/login", headers=basic_header(EMAIL, PASSWORD))

    assert resp.status_code == 200
    assert cookie_value(client, "jwt")
    assert client.get("/api/v1/me").status_code == 200


def test_me_without_cookie_is_unauthorized(client) -> None:
    resp = client.get("/api/v1/me")

    assert_problem(resp, 401, "unauthorized")


def test_bearer_header_is_rejected_for_browsers(client) -> None:
    _signup(client)
    token = cookie_value(client, "jwt")

    resp = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

    assert_problem(resp, 401, "unauthorized")


def test_refresh_with_cookie_sets_new_access_cookie(client, freeze_time) -> None:
    with freeze_time() as frozen:
        _signup(client)
        before = cookie_value(client, "jwt")
        frozen.tick(5)

        resp = client.post("/api/v1/auth/refresh")

        assert resp.status_code == 200
        assert resp.get_json()["expires_in"] == 86400
        after = cookie_value(client, "jwt")
        assert after and after != before
        assert client.get("/api/v1/me").status_code == 200


def test_refresh_without_cookie_is_unauthorized(client) -> None:
    assert_problem(client.post("/api/v1/auth/refresh"), 401, "unauthorized")


def test_logout_revokes_tokens_and_clears_cookies(client) -> None:
    _signup(client)
    access = cookie_value(client, "jwt")
    refresh = cookie_value(client, "refresh_token", path="/api")

    resp = client.post("/api/v1/auth/logout")

    assert resp.status_code == 204
    assert cookie_value(client, "jwt") is None
    # the old tokens are dead even when replayed by hand
    assert client.get("/api/v1/me", headers=app_headers(access)).status_code == 401
    assert client.post("/api/v1/auth/refresh", headers=app_headers(refresh)).status_code == 401


def test_logout_all_revokes_every_session(app, client) -> None:
    _signup(client)
    other_device = app.test_client()
    login = other_device.post(
        "/api/v1/auth/login", headers={**basic_header(EMAIL, PASSWORD), **app_headers()}
    )
    other_access = login.get_json()["access_token"]

    resp = client.post("/api/v1/auth/logout?all=1")

    assert resp.status_code == 204
    assert other_device.get("/api/v1/me", headers=app_headers(other_access)).status_code == 401


def test_logout_requires_authentication(client) -> None:
    assert_problem(client.post("/api/v1/auth/logout"), 401, "unauthorized")


# ------------------------------ Failures ---------------------------------- #


def test_login_wrong_password(client) -> None:
    _signup(client)

    resp = client.post("/api/v1/auth/login", headers=basic_header(EMAIL, "wrong-password"))

    assert_problem(resp, 401, "unauthorized")


def test_login_without_basic_header_is_bad_request(client) -> None:
    assert_problem(client.post("/api/v1/auth/login"), 400, "bad_request")


def test_signup_duplicate_email_conflicts(client) -> None:
    _signup(client)

    assert_problem(_signup(client), 409, "conflict")


def test_signup_validates_payload(client) -> None:
    resp = client.post(
        "/api/v1/auth/signup",
        headers=basic_header("not-an-email", "short"),
        json={},
    )

    body = assert_problem(resp, 422, "validation_error")
    assert {"email", "password", "nickname"} <= set(body["details"]["errors"])
