"""
Shared pytest fixtures for the LearnHub RBAC tests.

Provides:
- Application fixtures (app on a temporary SQLite database, test client)
- Store and service fixtures bound to one database session
- User factory creating principals with a given role / extra permissions
- Session login helper
"""
import itertools

import pytest

from learnhub import create_app
from learnhub.models import PrincipalStore
from learnhub.services import RoleManagementService, UserManagementService


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture
def app(tmp_path):
    """Flask app backed by a throwaway SQLite file."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'learnhub_test.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'LOG_DIR': None,
    })
    yield app
    app.extensions['learnhub_engine'].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    session = app.extensions['learnhub_db']()
    yield session
    session.close()


@pytest.fixture
def role_table(app):
    return app.extensions['learnhub_role_table']


# ============================================================================
# Store / Service Fixtures
# ============================================================================

@pytest.fixture
def store(db_session, role_table):
    return PrincipalStore(db_session, role_table)


@pytest.fixture
def service(store, role_table):
    return RoleManagementService(store, role_table)


@pytest.fixture
def user_service(store, role_table):
    return UserManagementService(store, role_table)


@pytest.fixture
def make_user(store):
    """
    Factory creating a stored principal.

    Usage:
        admin = make_user('admin')
        author = make_user('author', extra_permissions=['course:publish'])
        both = make_user(roles=['author', 'instructor'])
    """
    counter = itertools.count(1)

    def _make_user(role='user', roles=None, extra_permissions=None, manual_permissions=None):
        n = next(counter)
        label = role if not roles else '-'.join(roles)
        return store.create_user(
            username=f"{label}_{n}",
            useremail=f"{label}_{n}@learnhub.test",
            role=role,
            roles=roles,
            extra_permissions=extra_permissions,
            manual_permissions=manual_permissions,
        )

    return _make_user


@pytest.fixture
def login(client):
    """Put a user id into the test client's session, as the login flow would."""
    def _login(user, **extra_session):
        with client.session_transaction() as sess:
            sess['user_id'] = user.id
            sess.update(extra_session)
    return _login
