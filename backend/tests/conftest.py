"""
Pytest fixtures for orderapp backend tests.

Provides an in-memory database, repositories bound to the test session,
users for both roles and a Flask test client with auth helpers.
"""

from datetime import date

import pytest
from orderapp import create_app
from orderapp.extensions import db
from orderapp.models import ROLE_ADMINISTRATOR, ROLE_USER
from orderapp.repositories import CustomerRepository, ProductRepository, OrderRepository
from orderapp.services.auth_service import create_user

# bcrypt at its minimum cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4

ADMIN_PASSWORD = "Admin12345"
USER_PASSWORD = "User12345"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before each test but keep the schema."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture
def customer_repo(db_session):
    return CustomerRepository(db_session)


@pytest.fixture
def product_repo(db_session):
    return ProductRepository(db_session)


@pytest.fixture
def order_repo(db_session):
    return OrderRepository(db_session)


@pytest.fixture
def admin_user(db_session):
    return create_user("admin", ADMIN_PASSWORD, ROLE_ADMINISTRATOR, rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def plain_user(db_session):
    return create_user("clerk", USER_PASSWORD, ROLE_USER, rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def customer(customer_repo):
    return customer_repo.create(name="Acme", phone="03-0000-0000")


@pytest.fixture
def widget(product_repo):
    return product_repo.create(code="P1", name="Widget", unit_price=100)


def detail(code="P1", name="Widget", quantity=1, unit_price=100, amount=None) -> dict:
    """One order line as a caller would send it; amount defaults to quantity * unit_price."""
    return {
        "product_code": code,
        "product_name": name,
        "quantity": quantity,
        "unit_price": unit_price,
        "amount": quantity * unit_price if amount is None else amount,
    }


def order_fields(customer, order_date=date(2024, 4, 1), total_amount=0, **extra) -> dict:
    fields = {
        "customer_id": customer.id,
        "customer_name": customer.name,
        "order_date": order_date,
        "total_amount": total_amount,
    }
    fields.update(extra)
    return fields


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin", ADMIN_PASSWORD))


@pytest.fixture
def user_headers(client, plain_user):
    return auth_headers(get_auth_token(client, "clerk", USER_PASSWORD))
