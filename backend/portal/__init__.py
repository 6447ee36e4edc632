# backend/portal/__init__.py
import traceback

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import ConfigError, PortalError
from .extensions import db, migrate


def _check_config(app: Flask) -> None:
    secret = app.config.get("JWT_SECRET")
    min_length = app.config.get("JWT_MIN_SECRET_LENGTH", 32)
    if not secret:
        raise ConfigError("JWT_SECRET is not set; refusing to start")
    if len(secret) < min_length:
        raise ConfigError(f"JWT_SECRET must be at least {min_length} characters; refusing to start")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PortalError)
    def handle_portal_error(exc: PortalError):
        # Discard partial changes from the rejected operation
        db.session.rollback()
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.name.replace(" ", ""), "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        body = {"error": "InternalError", "message": "Internal server error"}
        if current_app.config.get("PORTAL_ENV") != "production":
            body["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return jsonify(body), 500


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    _check_config(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.blob_service import EXTENSION_KEY, DatabaseBlobStore
    app.extensions.setdefault(EXTENSION_KEY, DatabaseBlobStore())

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.permissions import permissions_bp
    from .routes.roles import roles_bp
    from .routes.users import users_bp
    from .routes.groups import groups_bp
    from .routes.folders import folders_bp, folder_admin_bp
    from .routes.pdfs import pdfs_bp
    from .routes.submissions import submissions_bp
    from .routes.system_events import system_events_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(permissions_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(groups_bp)
    app.register_blueprint(folders_bp)
    app.register_blueprint(folder_admin_bp)
    app.register_blueprint(pdfs_bp)
    app.register_blueprint(submissions_bp)
    app.register_blueprint(system_events_bp)

    _register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
