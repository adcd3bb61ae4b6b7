"""Global pytest fixtures for the sessionguard API and services."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any, Callable

import fakeredis
import pytest
from flask import Flask

from sessionguard import create_app
from sessionguard.core.config import TestingConfig
from sessionguard.core.extensions import db
from sessionguard.infra.redis.redis_session_registry import RedisSessionRegistry
from sessionguard.services._shared.ports import InMemorySessionRegistry, InMemoryUserStore
from sessionguard.services.tokens import TokenCodec, TokenService, TokenSettings

SECRET = b"unit-test-secret-with-enough-entropy-0123456789"


# ------------------------------ Services ---------------------------------- #


@pytest.fixture()
def settings() -> TokenSettings:
    """Short TTLs so expiry is easy to reach with a frozen clock."""

    return TokenSettings(secret=SECRET, access_ttl_seconds=60, refresh_ttl_seconds=3600)


@pytest.fixture()
def codec(settings: TokenSettings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture()
def registry() -> InMemorySessionRegistry:
    return InMemorySessionRegistry()


@pytest.fixture()
def users() -> InMemoryUserStore:
    store = InMemoryUserStore()
    store.create(email="test@example.com", password="password123", nickname="tester")
    return store


@pytest.fixture()
def service(codec: TokenCodec, registry: InMemorySessionRegistry, users: InMemoryUserStore) -> TokenService:
    """Build a TokenService wired to in-memory doubles."""

    return TokenService(codec, registry, users)


@pytest.fixture()
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""

    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture()
def redis_registry(fake_redis) -> RedisSessionRegistry:
    return RedisSessionRegistry(r=fake_redis, prefix="test")


# -------------------------------- App ------------------------------------- #


@pytest.fixture()
def app_config() -> type[TestingConfig]:
    """Config class used by :func:`app`; override in a module to tweak it."""

    return TestingConfig


@pytest.fixture()
def app_registry(redis_registry: RedisSessionRegistry) -> Any:
    """Registry injected into the app (fakeredis-backed by default)."""

    return redis_registry


@pytest.fixture()
def app(app_config: type[TestingConfig], app_registry: Any) -> Generator[Flask, None, None]:
    """Create a Flask application with a fresh schema and registry."""

    application = create_app(app_config, registry=app_registry)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> Any:
    """Return a Flask test client."""

    return app.test_client()


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01") as frozen:
    ...         frozen.tick(61)
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01 00:00:00")

    return _factory
