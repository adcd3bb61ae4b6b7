"""HTTP API mounted under ``API_BASE_PREFIX`` (``/api`` by default)."""

from __future__ import annotations

from flask import Flask, Response, request

# Responses of these blueprints carry tokens or identity and must not be cached.
CREDENTIAL_BLUEPRINTS = frozenset({"auth", "me"})


def _no_store(response: Response) -> Response:
    if request.blueprint in CREDENTIAL_BLUEPRINTS:
        response.headers["Cache-Control"] = "no-store"
        response.headers["Pragma"] = "no-cache"
    return response


def init_app(app: Flask) -> None:
    """Register the v1 blueprints and the no-store policy for credentials."""

    from sessionguard.api.v1 import API_VERSION, REGISTRY

    base = f"{app.config.get('API_BASE_PREFIX', '/api').rstrip('/')}/{API_VERSION}"
    for bp, rel_prefix in REGISTRY:
        app.register_blueprint(bp, url_prefix=base + rel_prefix)

    app.after_request(_no_store)


__all__ = ["init_app"]
