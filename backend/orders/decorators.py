# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import correlation_id
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user_id: id of the user the token was issued to
    - g.current_user_email: email recorded on the token
    - g.session_context: the full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "correlationId": correlation_id()}), 401

        context = session_service.validate_token(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "correlationId": correlation_id()}), 401

        g.current_user_id = context.user_id
        g.current_user_email = context.email
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
