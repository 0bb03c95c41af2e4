# backend/dealernet/__init__.py
import os

from flask import Flask, request
from werkzeug.exceptions import HTTPException
from werkzeug.routing import IntegerConverter

from .config import Config
from .extensions import db, migrate
from .responses import fail
from .validation import MAX_ID


class IdConverter(IntegerConverter):
    """`<int:...>` path segments capped at the largest storable id (larger values 404)."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_ID)
        super().__init__(map, *args, **kwargs)


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    if not app.config.get("RECEIPT_UPLOAD_DIR"):
        app.config["RECEIPT_UPLOAD_DIR"] = os.path.join(app.instance_path, "receipts")

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    app.url_map.converters["int"] = IdConverter

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.dealer_requests import dealer_requests_bp
    from .routes.stock_allocation import stock_allocation_bp
    from .routes.reports import reports_bp
    from .routes.ledger import ledger_bp
    from .routes.uploads import uploads_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(dealer_requests_bp)
    app.register_blueprint(stock_allocation_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(ledger_bp)
    app.register_blueprint(uploads_bp)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        # 404 / 405 / 413 etc. in the same envelope as the API
        message = {
            404: "Not found",
            405: "Method not allowed",
            413: "Uploaded file is too large",
        }.get(e.code, e.name)
        return fail(message, e.code)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
