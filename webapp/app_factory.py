"""
Application Factory - Flask App Creation

This module builds the API application: configuration, extensions,
blueprints, error handlers and the database with its default accounts.
"""

from pathlib import Path

from flask import Flask
from flask_cors import CORS

from src.config.unified_config import UnifiedConfig
from src.database.models import db
from src.database.utils import DatabaseUtils
from src.exceptions.application_errors import ApplicationError
from utils.logger import logger
from webapp.auth import login_manager


def create_app(config_name: str = "development") -> Flask:
    """
    Application factory function.

    Args:
        config_name: Configuration environment name (development, testing,
            production)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    config = UnifiedConfig(config_name)
    app.config.update(config.get_flask_config())
    app.extensions["unified_config"] = config

    # Initialize extensions
    _init_extensions(app)

    # Register blueprints
    _register_blueprints(app)

    # Set up error handlers
    _setup_error_handlers(app)

    # Make sure upload folders exist
    _init_folders(app)

    create_database_tables(app)

    logger.info(f"Flask application created successfully (config: {config_name})")

    return app


def _init_extensions(app: Flask) -> None:
    """Initialize Flask extensions."""
    # Database
    db.init_app(app)

    # CORS configuration
    client_url = app.config.get("CLIENT_URL", "*")
    if client_url != "*":
        origins = [origin.strip() for origin in client_url.split(",")]
        CORS(app, origins=origins, supports_credentials=True)
    else:
        CORS(app, supports_credentials=True)

    # Login Manager (bearer tokens, see webapp.auth)
    login_manager.init_app(app)


def _register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    # Index and health check
    from webapp.routes.main_routes import main_bp

    app.register_blueprint(main_bp)

    # Authentication routes
    from webapp.routes.auth_routes import auth_bp

    app.register_blueprint(auth_bp)

    # Paper upload and status routes
    from webapp.routes.paper_routes import papers_bp

    app.register_blueprint(papers_bp)

    # Grading routes
    from webapp.routes.grading_routes import grading_bp

    app.register_blueprint(grading_bp)


def _setup_error_handlers(app: Flask) -> None:
    """Set up global error handlers."""
    from webapp.error_handlers import (
        handle_400,
        handle_401,
        handle_403,
        handle_404,
        handle_405,
        handle_413,
        handle_500,
        handle_application_error,
        handle_unexpected_error,
    )

    app.register_error_handler(400, handle_400)
    app.register_error_handler(401, handle_401)
    app.register_error_handler(403, handle_403)
    app.register_error_handler(404, handle_404)
    app.register_error_handler(405, handle_405)
    app.register_error_handler(413, handle_413)
    app.register_error_handler(500, handle_500)
    app.register_error_handler(ApplicationError, handle_application_error)
    app.register_error_handler(Exception, handle_unexpected_error)


def _init_folders(app: Flask) -> None:
    """Create the upload and processed folders."""
    for key in ("UPLOAD_FOLDER", "PROCESSED_FOLDER"):
        Path(app.config[key]).mkdir(parents=True, exist_ok=True)


def create_database_tables(app: Flask) -> None:
    """Create database tables if they don't exist and seed default users."""
    with app.app_context():
        db.create_all()
        logger.info("Database tables created successfully")

        try:
            DatabaseUtils.ensure_default_users(app.config)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to create default users: {e}")
