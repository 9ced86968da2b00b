"""Flask application factory.

Provides:
 - Configuration from env, an optional YAML file (WEEKLIES_CONFIG) and overrides
 - DB engine initialization
 - OpenID Connect discovery (fatal on failure: the app is not created)
 - text/plain error handling, request logging
 - Blueprint registration (home/login/health, weekly pages)
"""

from __future__ import annotations

import logging
import os
from typing import Any

from dotenv import load_dotenv
from flask import Flask

from .auth import AuthInterface, OpenIDConnectAuth
from .config import Config
from .data import DataSourceInterface, DataSourceSQL
from .db import create_all, init_engine, remove_session
from .errors import register_error_handlers
from .home import bp as home_bp
from .http_client import ThreadLocalHTTPSession
from .logging_setup import install_request_logging
from .weekly_ui import bp as weekly_ui_bp


def load_config(config_override: dict[str, Any] | None = None) -> Config:
    cfg = Config.from_env()
    yaml_path = os.getenv("WEEKLIES_CONFIG")
    if yaml_path:
        cfg = Config.from_yaml(yaml_path, base=cfg)
    if config_override:
        known = {k: v for k, v in config_override.items() if hasattr(cfg, k)}
        if known:
            cfg.override(known)
    return cfg


def create_app(
    config_override: dict[str, Any] | None = None,
    *,
    auth: AuthInterface | None = None,
    data_source: DataSourceInterface | None = None,
) -> Flask:
    load_dotenv()
    cfg = load_config(config_override)
    app = Flask(
        __name__,
        template_folder=os.path.join(cfg.data_dir, "templates"),
        static_url_path="/statics",
        static_folder=os.path.join(cfg.data_dir, "statics"),
    )
    app.config.update(cfg.to_flask_dict())
    for k, v in (config_override or {}).items():  # also allow direct Flask config keys
        if k.isupper():
            app.config[k] = v
    app.weeklies_config = cfg  # type: ignore[attr-defined]

    # --- DB setup ---
    init_engine(cfg.database_url, force=bool(app.config.get("FORCE_DB_REINIT")))
    if app.config.get("DEV_CREATE_ALL") or os.getenv("DEV_CREATE_ALL") == "1":
        create_all()
    app.logger.info("Database at %s", cfg.database_url)

    # --- Collaborators ---
    if auth is None:
        auth = OpenIDConnectAuth.create(
            cfg, cfg.redirect_url, ThreadLocalHTTPSession(timeout=cfg.http_timeout_seconds)
        )
        app.logger.info("OpenID Connect provider at %s", cfg.openid_url_prefix)
    app.auth_client = auth  # type: ignore[attr-defined]
    app.data_source = data_source or DataSourceSQL()  # type: ignore[attr-defined]

    # --- Logging / errors ---
    install_request_logging(app, logging.DEBUG if app.debug else logging.INFO)
    register_error_handlers(app)

    @app.teardown_appcontext
    def _remove_db_session(_exc: BaseException | None) -> None:
        remove_session()

    app.register_blueprint(home_bp)
    app.register_blueprint(weekly_ui_bp)
    return app


__all__ = ["create_app", "load_config"]
