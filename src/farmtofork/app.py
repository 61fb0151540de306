import logging
import uuid
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from farmtofork.core.config import config
from farmtofork.core.dependencies import build_container
from farmtofork.core.exceptions import (
    BaseAPIException,
    DatabaseError,
    InternalServerError,
)
from farmtofork.db import create_all, get_connection, init_engine
from farmtofork.routes import (
    farmer_requests_bp,
    listings_bp,
    orders_bp,
    products_bp,
    profiles_bp,
    users_bp,
)
from farmtofork.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
}


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.app.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


def _error_response(payload: Dict[str, Any], status: int):
    payload["timestamp"] = DateUtils.to_iso_string(DateUtils.now_utc())
    request_id = getattr(g, "request_id", None)
    if request_id:
        payload["request_id"] = request_id
    return jsonify(payload), status


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory.

    `overrides` is merged into app.config; DATABASE_URL and CREATE_TABLES
    are read from it so tests can run against an in-memory SQLite database.
    """
    _configure_logging()

    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False
    app.config.update(overrides or {})

    if not app.config.get("TESTING"):
        config.validate()

    init_engine(app.config.get("DATABASE_URL") or config.database.url)
    if app.config.get("CREATE_TABLES"):
        create_all()

    app.extensions["container"] = build_container()

    # ------------------------------------------------------------------ #
    # Blueprints, each domain registered under /api/v1/                   #
    # ------------------------------------------------------------------ #
    app.register_blueprint(profiles_bp, url_prefix="/api/v1/profiles")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")
    app.register_blueprint(listings_bp, url_prefix="/api/v1/listings")
    app.register_blueprint(products_bp, url_prefix="/api/v1/products")
    app.register_blueprint(farmer_requests_bp, url_prefix="/api/v1/farmer-requests")
    app.register_blueprint(orders_bp, url_prefix="/api/v1/orders")

    # ------------------------------------------------------------------ #
    # Request id                                                           #
    # ------------------------------------------------------------------ #
    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:8]

    @app.after_request
    def expose_request_id(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers["X-Request-Id"] = request_id
        return response

    # ------------------------------------------------------------------ #
    # Error handlers: consistent JSON error envelope                       #
    # ------------------------------------------------------------------ #
    @app.errorhandler(BaseAPIException)
    def api_error(e: BaseAPIException):
        if e.status_code >= 500:
            logger.error(f"{e.error_code}: {e.internal_message}")
        else:
            logger.info(f"{e.error_code} ({e.status_code}): {e.message}")
        return _error_response(e.to_dict(), e.status_code)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        code = e.code or 500
        payload = {
            "success": False,
            "error": {
                "code": _HTTP_ERROR_CODES.get(code, "HTTP_ERROR"),
                "message": str(e.description),
                "details": {},
            },
        }
        return _error_response(payload, code)

    @app.errorhandler(SQLAlchemyError)
    def db_error(e: SQLAlchemyError):
        logger.exception(f"Database error: {e}")
        error = DatabaseError(str(e))
        return _error_response(error.to_dict(), error.status_code)

    @app.errorhandler(Exception)
    def internal_error(e: Exception):
        logger.exception(f"Unhandled error: {e}")
        error = InternalServerError()
        return _error_response(error.to_dict(), error.status_code)

    # ------------------------------------------------------------------ #
    # Health check                                                         #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Liveness + readiness probe. Returns 503 if DB is unreachable."""
        timestamp = DateUtils.to_iso_string(DateUtils.now_utc())
        try:
            with get_connection() as conn:
                conn.execute(text("SELECT 1"))
            return jsonify({
                "status": "ok",
                "database": "reachable",
                "environment": config.environment,
                "timestamp": timestamp,
            }), 200
        except SQLAlchemyError as exc:
            logger.error(f"Health check failed: {exc}")
            return jsonify({
                "status": "error",
                "database": "unreachable",
                "timestamp": timestamp,
            }), 503

    return app
