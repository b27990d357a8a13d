from __future__ import annotations

import uuid

from sqlalchemy.ext.hybrid import hybrid_property

from ..extensions import db
from ..errors import ValidationError
from orders.time_utils import utcnow, to_utc_z


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_email(email: str | None) -> str:
    """Trim and case-fold an email; reject anything without an '@'."""
    if not isinstance(email, str) or not email.strip() or "@" not in email:
        raise ValidationError("Invalid email.", details={"field": "email"})
    return email.strip().lower()


class User(db.Model):
    """
    Registered account that owns orders.

    Email is unique and stored case-folded, so lookups compare lower-case
    values only. The password is never stored; password_hash is whatever the
    hashing capability produced and is only checked through its verify().
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True)
    _email = db.Column("email", db.String(256), nullable=False, unique=True, index=True)
    _password_hash = db.Column("password_hash", db.String(512), nullable=False)
    full_name = db.Column(db.String(256), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True)

    orders = db.relationship("Order", back_populates="user", lazy=True)

    def __init__(self, email: str, password_hash: str, full_name: str | None = None):
        super().__init__()
        self.id = new_id()
        self.created_at = utcnow()
        self.email = email
        self.password_hash = password_hash
        self.full_name = full_name.strip() if isinstance(full_name, str) and full_name.strip() else None

    @hybrid_property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self._email = normalize_email(value)
        self.touch()

    @hybrid_property
    def password_hash(self) -> str:
        return self._password_hash

    @password_hash.setter
    def password_hash(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Password hash is required.")
        self._password_hash = value
        self.touch()

    def touch(self) -> None:
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self._email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "createdAtUtc": to_utc_z(self.created_at),
            "updatedAtUtc": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Issued access token.

    The plaintext token goes to the client once; only its SHA-256 hash is
    stored. The row records which user and email the token stands for and
    when it stops being valid.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    email = db.Column(db.String(256), nullable=False)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
