"""
Pytest fixtures for the payroll portal backend tests.

Provides an in-memory database, seeded roles and permissions, user
factories and bearer-token helpers.
"""

import pytest

from portal import create_app
from portal.config import Config
from portal.extensions import db
from portal.models import Role
from portal.services import (
    access_service,
    auth_service,
    group_service,
    permission_service,
    role_service,
    user_service,
)

TEST_PASSWORD = "Password123!"


class PortalTestConfig(Config):
    TESTING = True
    JWT_SECRET = "test-secret-that-is-long-enough-for-hs256-signing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORTAL_ENV = "testing"
    FOLDER_EMPTY_PERMISSIONS_POLICY = "strict"
    INITIAL_ADMIN_USERNAME = None
    INITIAL_ADMIN_PASSWORD = None
    INITIAL_ADMIN_EMAIL = None


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(PortalTestConfig)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test; schema is kept."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cost 12 is too slow for a test suite; hashes stay real bcrypt."""
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope='function')
def seeded(db_session):
    """Built-in permissions, groups, roles and default grants."""
    permission_service.initialize_permissions()
    group_service.initialize_groups()
    role_service.create_default_roles()
    permission_service.assign_default_role_permissions()
    return db_session


@pytest.fixture(scope='function')
def make_user(seeded):
    """Factory: make_user("alice", role="user", ministry="Finance")."""
    def _make(username, role="user", ministry=None, password=TEST_PASSWORD, **extra):
        role_row = seeded.query(Role).filter_by(name=role).first()
        assert role_row is not None, f"role {role} missing"
        data = {
            "username": username,
            "email": f"{username}@portal.test",
            "password": password,
            "first_name": username.capitalize(),
            "last_name": "Tester",
            "role_id": role_row.id,
            "ministry": ministry,
        }
        data.update(extra)
        return user_service.create_user(None, data)

    return _make


@pytest.fixture(scope='function')
def super_admin(make_user):
    return make_user("root", role="s-admin")


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("administrator", role="admin")


@pytest.fixture(scope='function')
def clerk(make_user):
    return make_user("clerk", role="user", ministry="Finance")


def resolve(user):
    """ResolvedUser snapshot of a User row, as a request would see it."""
    return access_service.resolve_user(user)


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/auth/login', json={
        'username': username,
        'password': password,
    })
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login_headers(client, username: str, password: str = TEST_PASSWORD) -> dict:
    return auth_headers(get_auth_token(client, username, password))


@pytest.fixture(scope='function')
def super_admin_headers(client, super_admin):
    return login_headers(client, super_admin.username)


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return login_headers(client, admin_user.username)


@pytest.fixture(scope='function')
def clerk_headers(client, clerk):
    return login_headers(client, clerk.username)
