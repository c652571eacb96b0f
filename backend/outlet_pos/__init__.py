# backend/outlet_pos/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # app.logger is the "outlet_pos" logger, so service module loggers inherit its level and handler
    app.logger.setLevel(logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper()))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Store handle and sale collaborators, shared by routes and CLI commands
    from .services.context import EXTENSION_KEY, build_context
    with app.app_context():
        app.extensions[EXTENSION_KEY] = build_context(app.config, db.engine)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.items import items_bp
    from .routes.customers import customers_bp
    from .routes.stock import stock_bp
    from .routes.sales import sales_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
