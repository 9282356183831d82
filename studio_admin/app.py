"""Flask application factory for the studio admin API."""
import logging
from flask import Flask, request
from werkzeug.exceptions import HTTPException
from .config import load_config
from .envelope import REQUEST_ID_HEADER, api_error_response, get_request_id
from .errors import ApiError, from_http_exception
from .extensions import init_services
from .logging_config import setup_logging
from .models import db
from .base.session_gate import init_session_gate
from .blueprints import (
    appointments, auth, customers, dashboard, forms, health, maintenance, media, pages, payments, settings
)
from .cli import create_admin_command, db_health_command, init_db_command, purge_sessions_command
from .utils import handle_api_exception

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Flask application factory for the studio admin API.

    Creates and configures a Flask application instance with:
    - Environment-derived configuration (overridden by ``test_config``)
    - Structured logging
    - SQLAlchemy database integration
    - Service container (sessions, CSRF, storage, website sync, ...)
    - Blueprint registration, page gate and error handlers
    - CLI command registration

    Args:
        test_config (dict, optional): Configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    config = load_config()
    if test_config is not None:
        config.update(test_config)

    setup_logging(config.get('LOG_DIR'), config.get('LOG_LEVEL'))
    logger.info(f"Starting studio admin in {config['ENVIRONMENT']} mode")

    app = Flask(__name__)
    app.config.from_mapping(config)
    if test_config is not None:
        logger.info("Loaded test configuration")

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    init_services(app)
    logger.info("Services initialized")

    @app.before_request
    def assign_request_id():
        get_request_id()

    @app.after_request
    def expose_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, get_request_id())
        return response

    init_session_gate(app)

    logger.info("Registering API blueprints")
    for module in (auth, customers, appointments, payments, forms, media, settings, dashboard,
                   maintenance, health, pages):
        app.register_blueprint(module.bp)
        logger.debug(f"Registered {module.bp.name} blueprint")
    app.register_blueprint(media.files_bp)
    logger.info("All API blueprints registered successfully")

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        return api_error_response(e)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if not request.path.startswith('/api/'):
            return e
        return api_error_response(from_http_exception(e))

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        return handle_api_exception(e, f"{request.method} {request.path}")

    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(db_health_command)
    app.cli.add_command(purge_sessions_command)
    logger.info("CLI commands registered: init-db, create-admin, db-health, purge-sessions")

    logger.info("Flask application initialization completed successfully")
    return app
