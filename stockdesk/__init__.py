import uuid

from flask import Flask, current_app, g, jsonify
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .extensions import db, login_manager
from .routes import (
    analytics,
    auth,
    dashboard,
    errors,
    inventory,
    inventory_control,
    orders,
    procurement,
    products,
    sales,
    settings,
    users,
    vendors,
    warehouses,
)
from config import Config
from . import models  # ensure models are registered with SQLAlchemy
from .seed import ensure_demo_users, ensure_superuser_account, seed_demo_data
from .utils.logging import configure_logging


def create_app(config_override=None):
    app = Flask(__name__)

    # load configuration from environment variables
    app.config.from_object(Config)
    if config_override:
        app.config.update(config_override)

    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if database_uri.startswith("sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        engine_options = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        connect_args = engine_options.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine_options.setdefault("poolclass", StaticPool)

    if not app.config.get("TESTING"):
        configure_logging(app)

    db.init_app(app)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        if not user_id:
            return None
        try:
            return db.session.get(models.User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Authentication required"}), 401

    with app.app_context():
        try:
            db.create_all()
            ensure_superuser_account(
                app.config.get("ADMIN_NAME", "John Admin"),
                app.config.get("ADMIN_EMAIL"),
                app.config.get("ADMIN_PASSWORD"),
            )
            if app.config.get("SEED_DEMO_DATA"):
                ensure_demo_users(app.config.get("DEMO_USER_PASSWORD"))
                if seed_demo_data():
                    current_app.logger.info("Loaded demo records into the store")
        except SQLAlchemyError:
            current_app.logger.exception("Database initialization error")
            db.session.rollback()
            raise

    @app.before_request
    def _assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]

    # register blueprints
    app.register_blueprint(errors.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(products.bp)
    app.register_blueprint(inventory.bp)
    app.register_blueprint(inventory_control.bp)
    app.register_blueprint(warehouses.bp)
    app.register_blueprint(orders.bp)
    app.register_blueprint(procurement.bp)
    app.register_blueprint(sales.bp)
    app.register_blueprint(vendors.bp)
    app.register_blueprint(analytics.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(settings.bp)

    return app
