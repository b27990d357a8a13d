"""
AuthService and token tests.

SECURITY: covers duplicate detection on case-folded email, the single
login failure message, bcrypt verification and token expiry/revocation.
"""

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from orders.errors import AlreadyExistsError, AuditAppendError, AuthenticationFailedError, ValidationError
from orders.models import AuditEvent, SessionToken, User
from orders.services import session_service
from orders.services.audit_service import AuditService
from orders.services.auth_service import INVALID_CREDENTIALS
from orders.time_utils import utcnow


class TestRegister:

    def test_register_returns_live_token(self, auth_service, db_session):
        result = auth_service.register("a@b.com", "secret1", "Ada")

        assert result.access_token
        assert result.expires_at > utcnow()

        context = session_service.validate_token(result.access_token)
        user = db_session.query(User).one()
        assert context.user_id == user.id
        assert context.email == "a@b.com"
        assert user.full_name == "Ada"

    def test_password_is_hashed(self, auth_service, hasher, db_session):
        auth_service.register("a@b.com", "secret1")
        user = db_session.query(User).one()

        assert user.password_hash != "secret1"
        assert hasher.verify("secret1", user.password_hash)

    def test_duplicate_email_case_insensitive(self, auth_service, db_session):
        auth_service.register("a@b.com", "secret1")
        with pytest.raises(AlreadyExistsError):
            auth_service.register("  A@B.COM ", "other-pass")
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize("email", ["", "no-at-sign", None])
    def test_invalid_email(self, auth_service, email):
        with pytest.raises(ValidationError):
            auth_service.register(email, "secret1")

    @pytest.mark.parametrize("password", ["", None, 12345])
    def test_invalid_password(self, auth_service, password):
        with pytest.raises(ValidationError):
            auth_service.register("a@b.com", password)

    def test_audits_registration(self, auth_service, db_session):
        auth_service.register("a@b.com", "secret1")

        event = db_session.query(AuditEvent).one()
        assert event.action == "UserRegistered"
        assert json.loads(event.details_json) == {"email": "a@b.com"}

    def test_user_kept_when_audit_fails(self, auth_service, db_session):
        with patch.object(AuditService, "append", side_effect=RuntimeError("down")):
            with pytest.raises(AuditAppendError) as excinfo:
                auth_service.register("a@b.com", "secret1")

        assert excinfo.value.result.access_token
        assert db_session.query(User).count() == 1


class TestLogin:

    def test_login_success(self, auth_service, db_session):
        auth_service.register("a@b.com", "secret1")
        result = auth_service.login("A@b.com", "secret1")

        assert result.expires_at > utcnow()
        assert session_service.validate_token(result.access_token) is not None
        actions = [e.action for e in db_session.query(AuditEvent).order_by(AuditEvent.created_at)]
        assert actions == ["UserRegistered", "UserLoggedIn"]

    def test_wrong_password_and_unknown_user_look_the_same(self, auth_service):
        auth_service.register("a@b.com", "secret1")

        with pytest.raises(AuthenticationFailedError) as wrong_password:
            auth_service.login("a@b.com", "wrong")
        with pytest.raises(AuthenticationFailedError) as unknown_user:
            auth_service.login("nobody@b.com", "secret1")

        assert wrong_password.value.message == unknown_user.value.message == INVALID_CREDENTIALS

    @pytest.mark.parametrize("email,password", [(None, "secret1"), ("a@b.com", None), (1, 2)])
    def test_malformed_credentials(self, auth_service, email, password):
        with pytest.raises(AuthenticationFailedError):
            auth_service.login(email, password)

    def test_corrupt_stored_hash_fails_closed(self, auth_service, make_user, db_session):
        user = make_user("a@b.com")
        user.password_hash = "not-a-bcrypt-hash"
        db_session.commit()

        with pytest.raises(AuthenticationFailedError):
            auth_service.login("a@b.com", "secret1")


class TestTokens:

    def test_expired_token_rejected(self, auth_service, db_session):
        token = auth_service.register("a@b.com", "secret1").access_token
        row = db_session.query(SessionToken).one()
        row.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert session_service.validate_token(token) is None

    def test_lifetime_follows_config(self, app, auth_service):
        app.config["TOKEN_EXPIRES_MINUTES"] = 5
        try:
            result = auth_service.register("a@b.com", "secret1")
        finally:
            app.config["TOKEN_EXPIRES_MINUTES"] = 60
        assert result.expires_at <= utcnow() + timedelta(minutes=5)

    def test_revoked_token_rejected(self, auth_service):
        token = auth_service.register("a@b.com", "secret1").access_token

        assert session_service.revoke_token(token) is True
        assert session_service.validate_token(token) is None
        assert session_service.revoke_token(token) is False

    def test_plaintext_token_not_stored(self, auth_service, db_session):
        token = auth_service.register("a@b.com", "secret1").access_token
        row = db_session.query(SessionToken).one()
        assert row.token_hash == session_service.hash_token(token)
        assert row.token_hash != token

    @pytest.mark.parametrize("token", ["", None, "garbage"])
    def test_unknown_token(self, db_session, token):
        assert session_service.validate_token(token) is None

    def test_cleanup_removes_dead_tokens(self, auth_service, db_session):
        live = auth_service.register("a@b.com", "secret1").access_token
        dead = auth_service.login("a@b.com", "secret1").access_token
        session_service.revoke_token(dead)

        assert session_service.cleanup_expired_tokens() == 1
        assert session_service.validate_token(live) is not None
