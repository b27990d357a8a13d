"""Flask CLI command tests."""

import pytest

from orders.models import User


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestSystemCommands:

    def test_init_db_is_idempotent(self, runner, db_session):
        for _ in range(2):
            result = runner.invoke(args=["system", "init-db"])
            assert result.exit_code == 0
            assert "PASS" in result.output

    def test_reset_db_requires_confirmation(self, runner, make_user, db_session):
        make_user("keep@example.com")
        result = runner.invoke(args=["system", "reset-db"], input="n\n")
        assert result.exit_code != 0
        assert db_session.query(User).count() == 1

    def test_reset_db(self, runner, make_user, db_session):
        make_user("gone@example.com")
        result = runner.invoke(args=["system", "reset-db", "--yes"])
        assert result.exit_code == 0
        assert db_session.query(User).count() == 0


class TestUserCommands:

    def test_list_empty(self, runner, db_session):
        result = runner.invoke(args=["users", "list"])
        assert "No users found." in result.output

    def test_create_then_list(self, runner, order_service, db_session):
        result = runner.invoke(args=[
            "users", "create", "--email", "Cli@Example.com", "--password", "secret1", "--full-name", "Cli User",
        ])
        assert result.exit_code == 0, result.output

        user = db_session.query(User).one()
        order_service.create_for_user(user.id)

        listing = runner.invoke(args=["users", "list"]).output
        assert "cli@example.com" in listing
        assert "Cli User" in listing

    def test_create_duplicate_fails(self, runner, make_user, db_session):
        make_user("dup@example.com")
        result = runner.invoke(args=["users", "create", "--email", "dup@example.com", "--password", "secret1"])
        assert result.exit_code == 1
        assert "Email already in use." in result.output


class TestAuditAndMaintenance:

    def test_audit_tail(self, runner, order_service, user_a, user_b):
        mine = order_service.create_for_user(user_a.id)
        order_service.create_for_user(user_b.id)

        result = runner.invoke(args=["audit", "tail", "--order-id", mine.id])
        assert result.exit_code == 0
        assert result.output.count("OrderCreated") == 1
        assert mine.id in result.output

    def test_audit_tail_empty(self, runner, db_session):
        assert "No audit events found." in runner.invoke(args=["audit", "tail"]).output

    def test_cleanup_tokens(self, runner, auth_service):
        auth_service.register("a@b.com", "secret1")
        result = runner.invoke(args=["maintenance", "cleanup-tokens"])
        assert result.exit_code == 0
        assert "Deleted 0 token(s)" in result.output
