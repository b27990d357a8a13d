"""
Pytest fixtures for the orders backend tests.

Provides test database setup, service fixtures, user/order factories and
HTTP auth helpers.
"""

import pytest

from orders import create_app
from orders.extensions import db
from orders.models import User
from orders.repositories import SQLAlchemyOrderRepository, SQLAlchemyUserRepository
from orders.services.audit_service import AuditService
from orders.services.auth_service import AuthService, BcryptPasswordHasher
from orders.services.order_service import OrderService


TEST_PASSWORD = "secret1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema (Core deletes skip the audit ORM guards)
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def hasher():
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture(scope='function')
def auth_service(db_session, hasher):
    return AuthService(SQLAlchemyUserRepository(db_session), AuditService(db_session), hasher)


@pytest.fixture(scope='function')
def order_service(db_session):
    return OrderService(
        SQLAlchemyOrderRepository(db_session),
        SQLAlchemyUserRepository(db_session),
        AuditService(db_session),
    )


@pytest.fixture(scope='function')
def make_user(db_session, hasher):
    """Factory: persist a user with TEST_PASSWORD."""
    def _make(email="user@example.com", password=TEST_PASSWORD, full_name=None):
        user = User(email=email, password_hash=hasher.hash(password), full_name=full_name)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def user_a(make_user):
    return make_user("alice@example.com", full_name="Alice")


@pytest.fixture(scope='function')
def user_b(make_user):
    return make_user("bob@example.com", full_name="Bob")


@pytest.fixture(scope='function')
def draft_order(order_service, user_a):
    """A Draft order owned by user_a (as an OrderView)."""
    return order_service.create_for_user(user_a.id)


def register_and_get_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to register through the API and return the access token."""
    response = client.post('/api/auth/register', json={
        'email': email,
        'password': password,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['accessToken']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def ann_headers(client, db_session):
    """Auth headers for a user registered through the API."""
    return auth_headers(register_and_get_token(client, "ann@example.com"))


@pytest.fixture(scope='function')
def ben_headers(client, db_session):
    return auth_headers(register_and_get_token(client, "ben@example.com"))
