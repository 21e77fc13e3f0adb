"""
Pytest fixtures for counterpos backend tests.

Provides an in-memory database, the Flask test client, access secrets and
pre-unlocked operator/admin sessions.
"""

import itertools

import pytest

from counterpos import create_app
from counterpos.extensions import db
from counterpos.models import Product
from counterpos.services import auth_service


TEST_PIN = "4821"
ADMIN_USERNAME = "owner"
ADMIN_PASSWORD = "Counter#2026"

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'BCRYPT_ROUNDS': 4,
    'STORE_TIMEZONE': 'Asia/Kolkata',
    'REPORT_AGGREGATOR': 'memory',
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def secrets_set(db_session):
    """Operator PIN and admin login configured."""
    auth_service.set_operator_pin(TEST_PIN)
    auth_service.set_admin_credentials(ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture(scope='function')
def operator_headers(client, secrets_set):
    """Unlocked counter session (OPERATOR)."""
    resp = client.post('/api/auth/unlock', json={'pin': TEST_PIN})
    assert resp.status_code == 200
    return auth_headers(resp.get_json()['token'])


@pytest.fixture(scope='function')
def admin_headers(client, secrets_set):
    """Unlocked counter session elevated to ADMIN."""
    resp = client.post('/api/auth/unlock', json={'pin': TEST_PIN})
    assert resp.status_code == 200
    headers = auth_headers(resp.get_json()['token'])

    resp = client.post(
        '/api/auth/admin/login',
        json={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD},
        headers=headers,
    )
    assert resp.status_code == 200
    return headers


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for catalog rows with unique SKUs."""
    counter = itertools.count(1)

    def _make(name=None, price_paise=10000, stock_quantity=10, category="Sports", **extra):
        n = next(counter)
        product = Product(
            name=name or f"Trophy {n}",
            sku=extra.pop("sku", f"TST-{n:04d}"),
            category=category,
            price_paise=price_paise,
            stock_quantity=stock_quantity,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
