# Overview: Domain error taxonomy and the Flask handlers that render it as JSON.

"""
Domain errors raised by entities and services.

Entities raise ValidationError / InvalidStateError at the point of violation.
Services raise NotFoundError, AlreadyExistsError and AuthenticationFailedError.
Ownership-masked absence of an order is NOT an error: services return None
and the route renders 404.

AuditAppendError is raised after a mutation has already been committed but the
audit record could not be written. It carries the committed result so the
route can still answer with it.
"""

from __future__ import annotations

from typing import Any

from flask import g, jsonify
from werkzeug.exceptions import HTTPException


class DomainError(Exception):
    """Base class for all expected business failures."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """400-level input problem (name, quantity, price, email shape)."""


class InvalidStateError(DomainError):
    """Illegal status transition, or item edit on a non-Draft order."""


class NotFoundError(DomainError):
    """A referenced user does not exist."""

    status_code = 404


class AlreadyExistsError(DomainError):
    """409-level uniqueness conflict (duplicate email)."""

    status_code = 409


class AuthenticationFailedError(DomainError):
    """Bad credentials. Never says which half of the credentials was wrong."""

    status_code = 401


class AuditAppendError(DomainError):
    """The primary change is committed; only the audit append failed."""

    status_code = 500

    def __init__(self, message: str, result: Any = None, details: dict | None = None):
        super().__init__(message, details)
        self.result = result


def correlation_id() -> str | None:
    return getattr(g, "correlation_id", None)


def error_body(message: str, details: dict | None = None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    cid = correlation_id()
    if cid:
        body["correlationId"] = cid
    return body


def register_error_handlers(app) -> None:
    """Map the taxonomy to HTTP responses for every blueprint."""

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        if exc.status_code >= 500:
            app.logger.error(
                "%s: %s correlation_id=%s", type(exc).__name__, exc.message, correlation_id()
            )
            return jsonify(error_body("Internal server error")), exc.status_code
        return jsonify(error_body(exc.message, exc.details)), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify(error_body(exc.description or exc.name)), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error correlation_id=%s", correlation_id())
        return jsonify(error_body("Internal server error")), 500


def audit_warning_response(exc: AuditAppendError, status: int):
    """The committed result with its normal status plus a warning field."""
    body = exc.result.to_dict() if exc.result is not None else {}
    body["warning"] = exc.message
    cid = correlation_id()
    if cid:
        body["correlationId"] = cid
    return jsonify(body), status
