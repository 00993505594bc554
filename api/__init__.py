from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import atexit
import logging
import os

from .config import get_config
from .errors import register_error_handlers
from .cli import register_commands
from models.db_storage import DBStorage
from models.credential_store import CredentialStore
from services.credentials import UserCredentialMatcher
from services.gateway import AuthGateway
from services.purge import PurgeSweeper
from services.refresh_sessions import RefreshSessionEngine
from services.settings import AuthSettings
from utils.security import AccessTokenIssuer

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Credential Service API",
        "version": "1.0.0",
        "description": "Issues short-lived access tokens and rotating refresh tokens.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def _is_reloader_parent(app: Flask) -> bool:
    """The debug reloader parent only watches files; the serving child has WERKZEUG_RUN_MAIN set."""
    return app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true"


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Storage, the access token issuer, the refresh session engine and the
    gateway are built here and kept in app.extensions.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(app.config["LOG_LEVEL"])

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    register_commands(app)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    settings = AuthSettings.from_config(app.config)
    issuer = AccessTokenIssuer(settings)
    engine = RefreshSessionEngine(CredentialStore(storage), settings)
    matcher = UserCredentialMatcher(storage)

    app.extensions["storage"] = storage
    app.extensions["access_issuer"] = issuer
    app.extensions["refresh_engine"] = engine
    app.extensions["credential_matcher"] = matcher
    app.extensions["auth_gateway"] = AuthGateway(matcher, issuer, engine)

    interval = app.config.get("PURGE_INTERVAL_SECONDS", 0)
    if interval > 0 and not _is_reloader_parent(app):
        sweeper = PurgeSweeper(engine, storage, interval)
        sweeper.start()
        atexit.register(sweeper.stop)
        app.extensions["purge_sweeper"] = sweeper
        logger.info("refresh token purge every %ss", interval)

    from .health import bp as health_bp
    from .auth import bp as auth_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")

    # Remove the request thread's DB session at the end of each app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Credential Service API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
