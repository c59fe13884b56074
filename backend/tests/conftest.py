"""
Pytest fixtures for PrintDesk backend tests.

Provides test database setup, customer/admin accounts, a fake file storage
adapter, and the test client.
"""

import pytest
from printdesk import create_app
from printdesk.extensions import db
from printdesk.models import User
from printdesk.models.auth import ROLE_ADMIN, ROLE_CUSTOMER
from printdesk.services.auth_service import hash_password
from printdesk.services.storage_service import FileStorage, STORAGE_EXTENSION_KEY
from printdesk.validation import DependencyFailure


PASSWORD = "Password123!"


class FakeStorage(FileStorage):
    """In-memory storage adapter; set `fail = True` to simulate an outage."""

    def __init__(self):
        self.saved = {}
        self.fail = False

    def store(self, data: bytes, original_name: str) -> str:
        if self.fail:
            raise DependencyFailure("Storage unavailable")
        url = f"/uploads/test-{len(self.saved) + 1}-{original_name}"
        self.saved[url] = data
        return url


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'ENFORCE_STATUS_TRANSITIONS': False,
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


@pytest.fixture(scope='function')
def storage(app):
    """Install a fresh FakeStorage as the app's storage adapter."""
    fake = FakeStorage()
    previous = app.extensions.get(STORAGE_EXTENSION_KEY)
    app.extensions[STORAGE_EXTENSION_KEY] = fake
    yield fake
    if previous is None:
        app.extensions.pop(STORAGE_EXTENSION_KEY, None)
    else:
        app.extensions[STORAGE_EXTENSION_KEY] = previous


def make_user(db_session, email, *, role=ROLE_CUSTOMER, first_name="Test", last_name="User"):
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone="",
        password_hash=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    """Customer account: Ana Cruz."""
    return make_user(db_session, "ana@example.com", first_name="Ana", last_name="Cruz")


@pytest.fixture(scope='function')
def other_customer(db_session):
    """Second customer, for ownership checks."""
    return make_user(db_session, "ben@example.com", first_name="Ben", last_name="Reyes")


@pytest.fixture(scope='function')
def admin(db_session):
    """Shop admin account."""
    return make_user(db_session, "admin@example.com", role=ROLE_ADMIN, first_name="Shop", last_name="Admin")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def customer_headers(client, customer):
    return auth_headers(get_auth_token(client, customer.email))


@pytest.fixture(scope='function')
def other_customer_headers(client, other_customer):
    return auth_headers(get_auth_token(client, other_customer.email))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))
