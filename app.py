"""Application factory."""

import json
import os
import uuid

from flask import Flask, jsonify, g, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes.auth import auth_bp, setup_oauth
from routes.questions import questions_bp
from routes.users import users_bp
from security.guards import authorize_request
from security.tokens import TokenService
from services.auth_service import AuthService
from services.email_service import EmailService
from services.question_generator import DisabledAIClient, QuestionGeneratorService
from services.user_service import UserService
from services.wiki_validator import WikiValidator

migrate = Migrate()
jwt = JWTManager()

CORS_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def create_app(config_class: type[Config] = Config, *, ai_client=None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    setup_oauth(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        methods=CORS_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        supports_credentials=True,
    )
    _register_security_headers(app)

    # Services, each with its own child logger
    _register_services(app, ai_client or DisabledAIClient())

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/usuarios")
    app.register_blueprint(questions_bp, url_prefix="/provas/ia")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Rate limiting, after routes exist so per-route limits can be attached
    _init_rate_limiting(app)

    # Errors
    _register_error_handlers(app)

    # Authorization runs after the request id is assigned
    app.before_request(authorize_request)

    return app


def _register_services(app: Flask, ai_client) -> None:
    token_service = TokenService(logger=app.logger.getChild("tokens"))
    email_service = EmailService.from_config(app.config, logger=app.logger.getChild("email"))
    wiki_validator = WikiValidator(logger=app.logger.getChild("wiki"))

    app.extensions["token_service"] = token_service
    app.extensions["email_service"] = email_service
    app.extensions["wiki_validator"] = wiki_validator
    app.extensions["auth_service"] = AuthService(
        token_service, email_service, logger=app.logger.getChild("auth")
    )
    app.extensions["user_service"] = UserService(logger=app.logger.getChild("users"))
    app.extensions["question_generator"] = QuestionGeneratorService(
        ai_client, wiki_validator, logger=app.logger.getChild("questions")
    )


def _register_security_headers(app: Flask) -> None:
    @app.after_request
    def _add_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if request.is_secure:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
            )
        return response


def _init_rate_limiting(app: Flask) -> Limiter:
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    for endpoint, limit in app.config.get("ROUTE_RATE_LIMITS", {}).items():
        view = app.view_functions.get(endpoint)
        if view is not None:
            app.view_functions[endpoint] = limiter.limit(limit)(view)
    return limiter


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": getattr(error, "name", "Error"),
            "detail": error.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        request_id = g.get("request_id") or str(uuid.uuid4())
        db.session.rollback()
        app.logger.exception(
            "Unhandled application error (request_id=%s)", request_id, exc_info=error
        )
        payload = {
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred.",
            "request_id": request_id,
        }
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
