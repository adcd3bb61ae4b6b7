"""WSGI entry point (``gunicorn sessionguard.wsgi:app``)."""

from __future__ import annotations

from sessionguard import create_app

app = create_app()
