# backend/orders/__init__.py
import logging
import uuid

from flask import Flask, g, request

from .config import Config
from .extensions import db, migrate


CORRELATION_HEADER = "X-Correlation-Id"


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.orders import orders_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(orders_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    @app.before_request
    def assign_correlation_id():
        g.correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

    @app.after_request
    def add_correlation_header(response):
        cid = getattr(g, "correlation_id", None)
        if cid:
            response.headers[CORRELATION_HEADER] = cid
        return response

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", []))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Correlation-Id"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
            response.headers["Access-Control-Expose-Headers"] = CORRELATION_HEADER
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
