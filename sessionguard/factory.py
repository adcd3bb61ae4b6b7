"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from sessionguard.core.config import BaseConfig, get_config
from sessionguard.core.logger import configure_logging, init_app as init_logging
from sessionguard.services._shared.ports import SessionRegistry


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    registry: SessionRegistry | None = None,
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class, object or import path; defaults to ``APP_ENV``.
    :param registry: Optional session registry overriding the one built from
        ``REDIS_URL``.
    """

    app = Flask(__name__)

    app.config.from_object(get_config() if config is None else config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from sessionguard.core import proxy

    proxy.init_app(app)

    from sessionguard.core import extensions

    extensions.init_app(app, registry=registry)

    init_logging(app)

    from sessionguard.core import cors

    cors.init_app(app)

    from sessionguard.api import init_app as init_api

    init_api(app)

    from sessionguard.core import errors

    errors.init_app(app)

    from sessionguard import cli

    cli.init_app(app)

    return app
