"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    Secure cookies depend on the scheme seen by Flask, so behind a TLS
    terminating proxy ``X-Forwarded-Proto`` must be trusted. Controlled by
    ``USE_PROXYFIX`` (defaults to ``True``); a single hop is trusted.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
