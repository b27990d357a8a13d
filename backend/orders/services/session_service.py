# Overview: Service-layer operations for access tokens; issues and validates them.

"""
Access Token Service

WHY: Authenticated routes need a bearer credential that identifies the
caller's user id (and email) and stops working after a fixed window.

SECURITY NOTES:
- Cryptographically secure random tokens (32 bytes = 64 hex chars)
- Only the SHA-256 hash is stored, never the plaintext token
- Absolute expiry of TOKEN_EXPIRES_MINUTES (default 60)
- Revocable
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from orders.time_utils import utcnow


DEFAULT_EXPIRES_MINUTES = 60


@dataclass(frozen=True)
class SessionContext:
    """Who a validated token stands for."""
    user_id: str
    email: str
    expires_at: datetime


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def token_lifetime() -> timedelta:
    minutes = current_app.config.get("TOKEN_EXPIRES_MINUTES", DEFAULT_EXPIRES_MINUTES)
    return timedelta(minutes=int(minutes))


def issue_token(user: User) -> tuple[str, datetime]:
    """
    Issue a new access token for user.

    Returns (plaintext_token, expires_at). The caller commits.
    """
    plaintext_token = generate_token()
    now = utcnow()
    expires_at = now + token_lifetime()

    db.session.add(SessionToken(
        user_id=user.id,
        email=user.email,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=expires_at,
        is_revoked=False,
    ))
    return plaintext_token, expires_at


def validate_token(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token.

    Returns None if the token is unknown, expired or revoked.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at <= utcnow():
        return None

    return SessionContext(
        user_id=session.user_id,
        email=session.email,
        expires_at=session.expires_at,
    )


def revoke_token(token: str) -> bool:
    """
    Revoke a token.

    Returns True if a live token was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True


def cleanup_expired_tokens() -> int:
    """
    Delete expired and revoked tokens.

    Returns the number of rows deleted.
    """
    deleted = db.session.query(SessionToken).filter(
        (SessionToken.expires_at <= utcnow()) | (SessionToken.is_revoked == True)  # noqa: E712
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
