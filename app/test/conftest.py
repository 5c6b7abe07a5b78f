"""
Pytest configuration and fixtures for the store tests

Every test gets a fresh application on an in-memory SQLite database. Route
tests talk to the app through test clients only; tests that call managers
directly request `ctx` to run inside an application context.
"""
import itertools
import os
import tempfile
from datetime import datetime

import pytest

os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='clothing_store_logs_'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')

from app import create_app, mailer  # noqa: E402
from app import db as _db  # noqa: E402
from app.data.core.user_info.user import User  # noqa: E402
from app.data.inventory.cloth import Cloth  # noqa: E402
from app.data.inventory.storage import Storage  # noqa: E402

DEFAULT_PASSWORD = 'password123'

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'WTF_CSRF_ENABLED': False,
    'ENABLE_HTTPS': False,
    'FORCE_HTTPS_REDIRECT': False,
    'SESSION_COOKIE_SECURE': False,
    'REMEMBER_COOKIE_SECURE': False,
    'RATELIMIT_ENABLED': False,
    'MAIL_SUPPRESS_SEND': True,
}


@pytest.fixture
def app():
    """Create Flask application for testing"""
    app = create_app(TEST_CONFIG)
    with app.app_context():
        _db.create_all()
    mailer.outbox.clear()

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for tests that use managers and models directly"""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory: insert a user and return its id"""
    counter = itertools.count(1)

    def _make(email=None, *, admin=False, verified=True, password=DEFAULT_PASSWORD):
        n = next(counter)
        with app.app_context():
            user = User(
                name=f'User {n}',
                email=email or f'user{n}@example.com',
                number=f'555000{n:04d}',
                address=f'{n} Test Street',
                role_id=1 if admin else 0,
                email_verified_at=datetime.utcnow() if verified else None,
            )
            user.set_password(password)
            _db.session.add(user)
            _db.session.commit()
            return user.id

    return _make


@pytest.fixture
def make_cloth(app):
    """Factory: insert a cloth with one primary storage; returns (cloth_id, storage_id)"""
    def _make(quantity=5, name='T-Shirt', price='15.00'):
        with app.app_context():
            cloth = Cloth(name=name, price=price)
            storage = Storage(quantity_limit=quantity, location='Main', is_primary=True)
            cloth.storages.append(storage)
            _db.session.add(cloth)
            _db.session.commit()
            return cloth.id, storage.id

    return _make


@pytest.fixture
def admin(ctx, make_user):
    return _db.session.get(User, make_user('admin@example.com', admin=True))


@pytest.fixture
def customer(ctx, make_user):
    return _db.session.get(User, make_user('customer@example.com'))


def _login(client, email, password=DEFAULT_PASSWORD):
    return client.post('/api/signin', json={'email': email, 'password': password})


@pytest.fixture
def login():
    """Helper function to login a user through the API"""
    return _login


@pytest.fixture
def admin_client(app, make_user):
    """Test client signed in as an admin"""
    make_user('admin@example.com', admin=True)
    client = app.test_client()
    assert _login(client, 'admin@example.com').status_code == 200
    return client


@pytest.fixture
def customer_client(app, make_user):
    """Test client signed in as a verified customer"""
    make_user('customer@example.com')
    client = app.test_client()
    assert _login(client, 'customer@example.com').status_code == 200
    return client


@pytest.fixture
def stock_of(app):
    """Read a storage's remaining quantity from a fresh session"""
    def _read(storage_id):
        with app.app_context():
            return _db.session.get(Storage, storage_id).quantity_limit

    return _read
