# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password hashing
- Opaque, revocable bearer tokens with a fixed expiry
- One failure message for unknown email and wrong password
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import AuditAppendError, audit_warning_response
from ..extensions import db
from ..repositories import SQLAlchemyUserRepository
from ..services import session_service
from ..services.audit_service import AuditService
from ..services.auth_service import AuthService
from ..decorators import bearer_token
from ..validation import parse_login_payload, parse_register_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def auth_service() -> AuthService:
    return AuthService(SQLAlchemyUserRepository(db.session), AuditService(db.session))


@auth_bp.post("/register")
def register_route():
    """
    Create an account and return an access token.

    Body: {email, password, fullName?}
    201 {accessToken, expiresAtUtc}; 409 on duplicate email; 400 on bad input.
    """
    email, password, full_name = parse_register_payload(request.get_json(silent=True))

    try:
        result = auth_service().register(email, password, full_name)
    except AuditAppendError as exc:
        return audit_warning_response(exc, 201)

    current_app.logger.info("User registered email=%s", email.strip().lower())
    return jsonify(result.to_dict()), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and return an access token.

    Token must be included in Authorization header for protected routes.
    """
    email, password = parse_login_payload(request.get_json(silent=True))

    try:
        result = auth_service().login(email, password)
    except AuditAppendError as exc:
        return audit_warning_response(exc, 200)

    return jsonify(result.to_dict()), 200


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke the presented token.

    Expects Authorization header: Bearer <token>

    WHY: Explicit logout prevents token reuse.
    """
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authentication required"}), 401

    if not session_service.revoke_token(token):
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"ok": True}), 200
