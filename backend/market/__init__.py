# backend/market/__init__.py
import logging

from flask import Flask, request

from .config import Config, build_engine_options
from .extensions import db, migrate


DEV_ORIGINS = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
}


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", build_engine_options(app.config))
    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.categories import categories_bp
    from .routes.events import events_bp
    from .routes.products import products_bp
    from .routes.items import items_bp
    from .routes.transactions import transactions_bp
    from .routes.users import users_bp
    from .routes.wishlist import wishlist_bp
    from .routes.chat import chat_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(wishlist_bp)
    app.register_blueprint(chat_bp)

    configured = {o.strip() for o in app.config["CORS_ORIGIN"].split(",") if o.strip()}
    allowed_origins = configured or DEV_ORIGINS

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
