# Overview: Service-layer operations for auth; registers users and logs them in.

"""
Authentication Service

WHY: Every order belongs to a user, so every request must be attributable.
Uses bcrypt for password hashing and issues opaque access tokens.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Hashes are only ever checked through bcrypt.checkpw, never compared
- Login failures never reveal whether the email or the password was wrong
- Emails are case-folded before lookup and storage
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyExistsError,
    AuthenticationFailedError,
    ValidationError,
)
from ..models import User
from ..models.users import normalize_email
from ..repositories.ports import AuditLog, UserRepository
from . import session_service
from .audit_service import append_after_commit, build_event
from .dto import AuthResult

INVALID_CREDENTIALS = "Invalid credentials"


class PasswordHasher(ABC):
    """One-way hashing capability. verify() is the only way to check a hash."""

    @abstractmethod
    def hash(self, raw: str) -> str: ...

    @abstractmethod
    def verify(self, raw: str, hashed: str) -> bool: ...


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, raw: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(raw.encode('utf-8'), salt)
        return hashed.decode('utf-8')  # Store as string in database

    def verify(self, raw: str, hashed: str) -> bool:
        """
        Verify password against bcrypt hash.

        bcrypt.checkpw() is timing-safe. A malformed stored hash counts as
        a mismatch.
        """
        try:
            return bcrypt.checkpw(raw.encode('utf-8'), hashed.encode('utf-8'))
        except ValueError:
            return False


def default_hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=int(current_app.config.get("BCRYPT_ROUNDS", 12)))


def validate_password(password) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required.", details={"field": "password"})
    return password


class AuthService:
    """
    register/login against the user repository.

    Both commit the user/token first, then append the audit event
    (UserRegistered / UserLoggedIn) as a separate step.
    """

    def __init__(self, users: UserRepository, audit: AuditLog, hasher: PasswordHasher | None = None):
        self.users = users
        self.audit = audit
        self.hasher = hasher or default_hasher()

    def register(self, email: str, password: str, full_name: str | None = None) -> AuthResult:
        """
        Create a user and issue a token.

        Raises:
            ValidationError: malformed email or empty password
            AlreadyExistsError: a user with the case-folded email exists
        """
        email = normalize_email(email)
        password = validate_password(password)

        if self.users.get_by_email(email) is not None:
            raise AlreadyExistsError("Email already in use.", details={"email": email})

        user = User(email=email, password_hash=self.hasher.hash(password), full_name=full_name)
        self.users.add(user)
        token, expires_at = session_service.issue_token(user)
        try:
            self.users.save()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            self.users.rollback()
            raise AlreadyExistsError("Email already in use.", details={"email": email})

        result = AuthResult(access_token=token, expires_at=expires_at)
        event = build_event("UserRegistered", user_id=user.id, details={"email": user.email})
        return append_after_commit(self.audit, event, result)

    def login(self, email: str, password: str) -> AuthResult:
        """
        Verify credentials and issue a token.

        Raises AuthenticationFailedError with the same message whether the
        email is unknown or the password is wrong.
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationFailedError(INVALID_CREDENTIALS)

        user = self.users.get_by_email(email)
        if user is None:
            raise AuthenticationFailedError(INVALID_CREDENTIALS)

        if not self.hasher.verify(password, user.password_hash):
            raise AuthenticationFailedError(INVALID_CREDENTIALS)

        token, expires_at = session_service.issue_token(user)
        self.users.save()

        result = AuthResult(access_token=token, expires_at=expires_at)
        event = build_event("UserLoggedIn", user_id=user.id, details={"email": user.email})
        return append_after_commit(self.audit, event, result)
