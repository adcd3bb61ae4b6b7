"""HTTP helper utilities for tests."""

from __future__ import annotations


def cookie_value(client, name: str, path: str = "/") -> str | None:
    """Return the value of cookie ``name`` stored by the test client."""

    cookie = client.get_cookie(name, path=path)
    return cookie.value if cookie is not None else None


def set_cookie_headers(response) -> dict[str, str]:
    """Map cookie name -> raw ``Set-Cookie`` header for a response."""

    out: dict[str, str] = {}
    for header in response.headers.getlist("Set-Cookie"):
        name = header.split("=", 1)[0]
        out[name] = header
    return out
