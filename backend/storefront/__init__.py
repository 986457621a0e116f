# backend/storefront/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config.get("STOREFRONT_LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.pricing import pricing_bp
    from .routes.stock import stock_bp
    from .routes.user_actions import user_actions_bp
    from .routes.payments import payments_bp
    from .routes.orders import orders_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(user_actions_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(orders_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
