"""
Pytest fixtures for MenuForge backend tests.

Provides test database setup, account/menu fixtures, and test client helpers.
"""

import pytest

from menuforge import create_app
from menuforge.extensions import db
from menuforge.models import MenuStatus, MenuUser, ROLE_ADMIN, ROLE_MENU_DEV
from menuforge.services import menu_service
from menuforge.services.auth_service import create_user_with_password


TEST_PASSWORD = "Password123"


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
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_account(email, role=ROLE_MENU_DEV, display_name=None, password=TEST_PASSWORD):
    return create_user_with_password(
        email=email,
        password=password,
        display_name=display_name or email.split("@")[0],
        role=role,
    )


def make_menu(owner, name="Test Menu", status=MenuStatus.ACTIVE):
    """Create a menu for owner and force it into status (bypasses the lifecycle)."""
    menu = menu_service.create_menu(owner, name)
    menu.status = MenuStatus(status).value
    db.session.commit()
    return menu


def reload(model, row_id):
    """Fetch a fresh copy of a row after requests committed in other sessions."""
    db.session.expire_all()
    return db.session.get(model, row_id)


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_account("admin@menuforge.test", role=ROLE_ADMIN, display_name="Admin")


@pytest.fixture(scope='function')
def dev_user(db_session):
    return make_account("dev@menuforge.test", display_name="Dev A")


@pytest.fixture(scope='function')
def other_dev(db_session):
    return make_account("other@menuforge.test", display_name="Dev B")


@pytest.fixture(scope='function')
def active_menu(dev_user):
    return make_menu(dev_user, "Active Menu", MenuStatus.ACTIVE)


@pytest.fixture(scope='function')
def pending_menu(dev_user):
    return make_menu(dev_user, "Pending Menu", MenuStatus.PENDING_APPROVAL)


@pytest.fixture(scope='function')
def menu_user(db_session, active_menu):
    row = MenuUser(menu_id=active_menu.id, email="player@example.com", hwid="HWID-1")
    db_session.add(row)
    db_session.commit()
    return row


def get_auth_token(client, email, password=TEST_PASSWORD):
    """Helper to log in and return the session token."""
    response = client.post('/api/auth', json={
        'action': 'login',
        'email': email,
        'password': password,
    })
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token):
    """Helper to build Authorization header."""
    return {"Authorization": f"Bearer {token}"}


def call_action(client, token, action, **params):
    """POST one internal action with the token in the body."""
    body = {"action": action, **params}
    if token is not None:
        body["token"] = token
    return client.post('/api/action', json=body)


def call_external(client, key, action, **params):
    """POST one partner action authenticated with a static menu key."""
    headers = auth_headers(key) if key else {}
    return client.post('/api/external', json={"action": action, **params}, headers=headers)


@pytest.fixture(scope='function')
def admin_token(client, admin_user):
    return get_auth_token(client, admin_user.email)


@pytest.fixture(scope='function')
def dev_token(client, dev_user):
    return get_auth_token(client, dev_user.email)


@pytest.fixture(scope='function')
def other_token(client, other_dev):
    return get_auth_token(client, other_dev.email)
