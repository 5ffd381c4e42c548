# backend/swiftpos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Store state and backup scheduler (process-scoped, one per app)
    from .services.state_service import StoreState, EXTENSION_KEY
    from .services.backup_service import BackupScheduler, SCHEDULER_EXTENSION_KEY

    state = StoreState()
    app.extensions[EXTENSION_KEY] = state
    if app.config["BACKUP_ENABLED"]:
        app.extensions[SCHEDULER_EXTENSION_KEY] = BackupScheduler(
            state,
            debounce_seconds=app.config["BACKUP_DEBOUNCE_SECONDS"],
            auto_sync_seconds=app.config["AUTO_SYNC_SECONDS"],
            manual_sync_seconds=app.config["MANUAL_SYNC_SECONDS"],
            app=app,
        )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.sales import sales_bp
    from .routes.expenses import expenses_bp
    from .routes.settings import settings_bp
    from .routes.reports import reports_bp
    from .routes.data import data_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(data_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Confirm-Password"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
