"""
API error taxonomy and the JSON response envelope.

Views raise ``ApiError`` subclasses; the handlers registered by
``register_error_handlers`` turn them (and any stray exception) into
``{"success": false, "error": {"code", "message"}}`` responses.
"""
from __future__ import annotations

from typing import Any, Dict

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    status_code = 400
    code = "BAD_REQUEST"
    message = "Bad request"

    def __init__(self, message: str | None = None, code: str | None = None, status_code: int | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class AuthError(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Admin access required"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class PayloadTooLarge(ApiError):
    status_code = 413
    code = "FILE_TOO_LARGE"
    message = "File must be 5MB or smaller"


HTTP_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "FILE_TOO_LARGE",
}


def success(data: Any = None, status: int = 200, pagination: Dict[str, int] | None = None):
    body: Dict[str, Any] = {"success": True, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def failure(code: str, message: str, status: int):
    return jsonify({"success": False, "error": {"code": code, "message": message}}), status


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def _api_error(err: ApiError):
        _rollback_session()
        return failure(err.code, err.message, err.status_code)

    @app.errorhandler(429)
    def _rate_limited(err: HTTPException):
        app.logger.warning("Rate limit exceeded: %s - IP: %s", err.description, request.remote_addr or "unknown")
        return failure("RATE_LIMITED", "Too many requests, please try again later", 429)

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        _rollback_session()
        status = err.code or 500
        if status == 413:
            return failure("FILE_TOO_LARGE", PayloadTooLarge.message, 413)
        code = HTTP_CODES.get(status, "HTTP_ERROR")
        return failure(code, err.description or err.name, status)

    @app.errorhandler(Exception)
    def _unhandled(err: Exception):
        _rollback_session()
        app.logger.exception("Unhandled error: %s", err)
        return failure("INTERNAL_SERVER_ERROR", "Unexpected server error", 500)


def _rollback_session() -> None:
    session = g.get("db_session")
    if session is not None:
        session.rollback()
