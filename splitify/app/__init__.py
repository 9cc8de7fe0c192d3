"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and Alembic can import the metadata without a server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging for the `splitify` package
  3. Initialise the SQLAlchemy extension via init_app()
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register a custom JSON provider to serialise Decimal as string
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from splitify.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# All monetary amounts are serialised as strings to preserve precision.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("33.3333333333") → "33.3333333333" (not a float)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from splitify.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    with app.app_context():
        from splitify.app.models import (  # noqa: F401
            ledger,
            person,
            transaction,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Applies LOG_LEVEL to app.logger and the `splitify` package logger.

    Library modules only call logging.getLogger(__name__) and never attach
    handlers; output goes wherever the hosting process routes the root logger.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    logging.getLogger("splitify").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under /api/v1/ledgers.

    Every resource hangs off a ledger, so all blueprints share the prefix and
    individual route files only specify the path below it.
    """
    from splitify.app.routes.balances import balances_bp
    from splitify.app.routes.ledgers import ledgers_bp
    from splitify.app.routes.people import people_bp
    from splitify.app.routes.transactions import transactions_bp

    app.register_blueprint(ledgers_bp,      url_prefix="/api/v1/ledgers")
    app.register_blueprint(people_bp,       url_prefix="/api/v1/ledgers")
    app.register_blueprint(transactions_bp, url_prefix="/api/v1/ledgers")
    app.register_blueprint(balances_bp,     url_prefix="/api/v1/ledgers")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors, first error only (400)
      Exception       → generic INTERNAL_ERROR (500); traceback logged, never returned
    """
    from splitify.app.errors import AppError, ErrorCode

    known_codes = set(vars(ErrorCode).values())

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError — they let it propagate here."""
        if error.http_status >= 500:
            app.logger.error("%r", error)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Returns the FIRST field error. If its message is a registered error
        code it becomes the response code; "Missing data for required field"
        maps to MISSING_FIELD; anything else is INVALID_FIELD.
        """
        messages = error.messages  # e.g. {"amount": ["INVALID_AMOUNT_PRECISION"]}

        field = None
        raw_message = "Invalid input."

        if isinstance(messages, dict):
            for field_name, field_errors in messages.items():
                field = field_name if field_name != "_schema" else None

                if isinstance(field_errors, list):
                    raw_message = field_errors[0] if field_errors else "Invalid value."
                else:
                    raw_message = str(field_errors)
                break
        elif isinstance(messages, list) and messages:
            raw_message = messages[0]

        raw_message = str(raw_message)
        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        Stack traces never leave the server.
        """
        # Flask's own HTTP errors (unknown route, bad JSON body, ...) keep their status.
        if isinstance(error, HTTPException):
            return error

        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development when DEBUG or
    TESTING is on, so a frontend served from another local port can call
    the API.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "MISSING_FIELD": "This field is required and must not be blank.",
        "INVALID_AMOUNT": "Amount must be a number greater than zero.",
        "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
        "INVALID_TRANSACTION_TYPE": "type must be 'expense' or 'payment'.",
        "INVALID_CATEGORY": "category must be 'personal' or 'common' (payments take no category).",
        "INVALID_ROLE": "role must be 'owner', 'member' or 'guest'.",
        "SPENDER_SENT_FOR_COMMON": "Do not send spent_by for a common expense; it is split between everyone.",
    }
    return _messages.get(code, "Invalid input.")
