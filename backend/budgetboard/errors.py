# Overview: Error taxonomy and the JSON error handlers registered on the app.

"""
Error taxonomy

Services raise these; blueprints never build error responses by hand.
Every error renders as {"message": ...}. In development mode (APP_ENV=development)
the response also carries the stack trace.

Database constraint violations are not pre-validated in application code.
They are translated here by inspecting the driver's error code:
- 23505 / UNIQUE constraint failed       -> 409
- 23503 / FOREIGN KEY constraint failed  -> 400
- 22P02 (invalid text representation)    -> 400
- 23502 / NOT NULL constraint failed     -> 400
- 23514 / CHECK constraint failed        -> 400
"""

import traceback

from flask import current_app, jsonify
from sqlalchemy.exc import StatementError
from werkzeug.exceptions import HTTPException

from .extensions import db


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "Internal server error"


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Invalid request."


class AuthError(AppError):
    """Missing/invalid/expired token or bad credentials."""
    status_code = 401
    default_message = "Authentication required."


class AuthorizationError(AppError):
    """Not a member of the project, or role too low."""
    status_code = 403
    default_message = "Insufficient permissions."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found."


class ConflictError(AppError):
    """Unique-constraint violation."""
    status_code = 409
    default_message = "A record with this data already exists."


class ForeignKeyError(AppError):
    """Foreign-key violation (referenced record missing)."""
    status_code = 400
    default_message = "Referenced record does not exist."


class InternalError(AppError):
    status_code = 500


PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_INVALID_TEXT_REPRESENTATION = "22P02"
PG_NOT_NULL_VIOLATION = "23502"
PG_CHECK_VIOLATION = "23514"


def _driver_error_code(exc) -> str | None:
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code

    # sqlite3: map constraint failures onto the PostgreSQL codes
    text = str(orig)
    errorname = getattr(orig, "sqlite_errorname", "") or ""
    if "UNIQUE constraint failed" in text or errorname in {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}:
        return PG_UNIQUE_VIOLATION
    if "FOREIGN KEY constraint failed" in text or errorname == "SQLITE_CONSTRAINT_FOREIGNKEY":
        return PG_FOREIGN_KEY_VIOLATION
    if "NOT NULL constraint failed" in text or errorname == "SQLITE_CONSTRAINT_NOTNULL":
        return PG_NOT_NULL_VIOLATION
    if "CHECK constraint failed" in text or errorname == "SQLITE_CONSTRAINT_CHECK":
        return PG_CHECK_VIOLATION
    return None


def translate_db_error(exc) -> AppError:
    code = _driver_error_code(exc)
    if code == PG_UNIQUE_VIOLATION:
        return ConflictError("A record with this data already exists.")
    if code == PG_FOREIGN_KEY_VIOLATION:
        return ForeignKeyError("Referenced record does not exist.")
    if code == PG_INVALID_TEXT_REPRESENTATION:
        return ValidationError("Invalid ID format.")
    if code in (PG_NOT_NULL_VIOLATION, PG_CHECK_VIOLATION):
        return ValidationError("Invalid or missing field value.")
    return InternalError()


def _is_development() -> bool:
    return current_app.config.get("APP_ENV") == "development"


def error_response(error: AppError, *, exc: BaseException | None = None):
    body = {"message": error.message}
    if _is_development():
        body["stack"] = "".join(traceback.format_exception(exc or error))
    return jsonify(body), error.status_code


def register_error_handlers(app) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            current_app.logger.exception("Request failed: %s", exc.message)
        return error_response(exc)

    # IntegrityError and DataError are StatementError subclasses
    @app.errorhandler(StatementError)
    def handle_db_error(exc):
        db.session.rollback()
        translated = translate_db_error(exc)
        if translated.status_code >= 500:
            current_app.logger.exception("Unhandled database error")
        else:
            current_app.logger.info("Constraint violation translated to %s", translated.status_code)
        return error_response(translated, exc=exc)

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        if exc.code == 404:
            return jsonify({"message": "Route not found."}), 404
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        error = InternalError(str(exc) if _is_development() else None)
        return error_response(error, exc=exc)
