"""Global Flask extension instances and service wiring."""

from __future__ import annotations

import logging
from typing import cast

from flask import Flask, current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

from sessionguard.services._shared.ports import InMemorySessionRegistry, SessionRegistry
from sessionguard.services.accounts import AccountService
from sessionguard.services.tokens import TokenCodec, TokenService, TokenSettings

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
limiter = Limiter(get_remote_address)

EXTENSION_KEY = "sessionguard"


def _build_registry(app: Flask) -> SessionRegistry:
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        # Each worker process would hold its own registry.
        if not (app.debug or app.testing):
            raise RuntimeError("REDIS_URL must be set outside debug and testing runs.")
        log.warning("REDIS_URL is not set; using the in-process session registry")
        return InMemorySessionRegistry()

    from sessionguard.infra.redis.redis_session_registry import (
        RedisSessionRegistry,
        build_redis_client,
    )

    client = build_redis_client(app.config)
    # An unreachable Redis at startup is not fatal: requests fail closed until it returns.
    return RedisSessionRegistry(client, prefix=app.config.get("SESSION_KEY_PREFIX", "sess"))


def init_app(app: Flask, *, registry: SessionRegistry | None = None) -> None:
    """Initialize SQLAlchemy, the rate limiter and the token services.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances.
    registry:
        Optional pre-built session registry (tests inject fakeredis-backed
        or in-memory registries here).
    """
    db.init_app(app)

    # Ensure models are imported so metadata is complete
    from sessionguard import models as _models  # noqa: F401

    limiter.init_app(app)

    from sessionguard.infra.sqlalchemy.user_store import SqlAlchemyUserStore

    settings = TokenSettings.from_config(app.config)
    users = SqlAlchemyUserStore(db)
    tokens = TokenService(TokenCodec(settings), registry or _build_registry(app), users)
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "tokens": tokens,
        "accounts": AccountService(users, tokens),
    }


def _services() -> dict[str, object]:
    try:
        return cast(dict[str, object], current_app.extensions[EXTENSION_KEY])
    except KeyError as exc:
        raise RuntimeError("Token services are not initialized. Call init_app() first.") from exc


def get_token_service() -> TokenService:
    """Return the token service bound to the current application."""
    return cast(TokenService, _services()["tokens"])


def get_account_service() -> AccountService:
    """Return the account service bound to the current application."""
    return cast(AccountService, _services()["accounts"])


def get_token_settings() -> TokenSettings:
    """Return the immutable token settings of the current application."""
    return cast(TokenSettings, _services()["settings"])
