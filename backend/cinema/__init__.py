# backend/cinema/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Fail at startup on an unknown usage mode; it would silently disable max_uses
    from .services.discount_service import usage_mode
    app.config["DISCOUNT_USAGE_COUNTED_AT"] = usage_mode(app.config["DISCOUNT_USAGE_COUNTED_AT"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.sessions import sessions_bp
    from .routes.reservations import reservations_bp
    from .routes.sales import sales_bp
    from .routes.discounts import discounts_bp
    from .routes.tickets import tickets_bp
    from .routes.inventory import inventory_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(discounts_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(inventory_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
