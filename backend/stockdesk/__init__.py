# backend/stockdesk/__init__.py
from flask import Flask, request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .services.rate_limit_service import RateLimiter
from .validation import ApiError, PermissionDeniedError, RateLimitedError, RecordIdConverter


# Messages for Werkzeug errors raised before any view runs
HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
    413: "File too large",
}


def _request_origin() -> str:
    """Origin of this request as seen by the client (proxy headers honoured)."""
    scheme = request.headers.get("X-Forwarded-Proto", "").split(",")[0].strip() or request.scheme
    host = request.headers.get("X-Forwarded-Host", "").split(",")[0].strip() or request.host
    return f"{scheme}://{host}"


def _is_allowed_cross_origin(origin: str | None) -> bool:
    return bool(origin) and origin in current_app.config["ALLOWED_ORIGINS"]


def register_error_handlers(app: Flask) -> None:
    """Every error leaves the API as {"error": message}."""

    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        response = jsonify({"error": str(e)})
        response.status_code = e.status_code
        if isinstance(e, RateLimitedError):
            response.headers["Retry-After"] = str(e.retry_after)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        response = jsonify({"error": HTTP_ERROR_MESSAGES.get(e.code, e.name)})
        response.status_code = e.code
        # Keep headers such as Allow (405)
        for key, value in e.get_response().headers.items():
            if key.lower() not in ("content-type", "content-length"):
                response.headers[key] = value
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error during %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # One limiter per process; buckets live as long as the app
    app.extensions["rate_limiter"] = RateLimiter()

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Path ids past the integer column range 404 instead of overflowing the driver
    app.url_map.converters["int"] = RecordIdConverter

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.categories import categories_bp
    from .routes.suppliers import suppliers_bp
    from .routes.requests import requests_bp
    from .routes.invoices import invoices_bp
    from .routes.storage import storage_bp
    from .routes.users import users_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(requests_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(storage_bp)
    app.register_blueprint(users_bp)

    register_error_handlers(app)

    @app.before_request
    def guard_origin():
        origin = request.headers.get("Origin")
        if origin and origin != _request_origin() and not _is_allowed_cross_origin(origin):
            current_app.logger.warning(
                "Rejected cross-origin %s %s from %s", request.method, request.path, origin
            )
            raise PermissionDeniedError("Origin not allowed")

        if request.method == "OPTIONS":
            return "", 200
        return None

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if _is_allowed_cross_origin(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
