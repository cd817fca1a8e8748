"""Application factory for the account service."""

from __future__ import annotations

from flask import Flask

from accounts.core.config import BaseConfig, get_config
from accounts.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build the Flask app.

    Setup order matters: logging first so startup failures are logged as
    JSON, then the database, then the auth components. The last step raises
    before any route is registered when the signing secret, the bcrypt cost or
    the refresh store backend is unusable.

    :param config: Config class, object or import path; ``None`` selects one
        from ``APP_ENV``.
    :param instance_relative_config: Look for ``instance_config_filename`` in
        the instance folder.
    :param instance_config_filename: Optional overrides file (silently skipped
        when absent).
    :raises accounts.core.config.ConfigurationError: Unusable auth settings.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(config if config is not None else get_config())
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from accounts.api import init_app as init_api
    from accounts.core import errors, extensions, security

    extensions.init_app(app)
    security.init_app(app)
    init_logging(app)
    init_api(app)
    errors.init_app(app)

    app.logger.info(
        "app.ready", extra={"backend": app.config.get("REFRESH_TOKEN_STORE", "sql")}
    )
    return app
