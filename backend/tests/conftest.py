"""
Pytest fixtures for StockDesk backend tests.

Every test gets its own application (in-memory database, fresh rate
limiter, temporary storage root) so no state leaks between tests.
"""

import pytest

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import User, Product, Category, ROLE_ADMIN, ROLE_USER
from stockdesk.services.auth_service import hash_password
from stockdesk.services.session_service import create_session_token

PASSWORD = "secret123"


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret',
        'AUTH_COOKIE_SECURE': False,
        'ALLOW_REGISTRATION': True,
        'ALLOWED_ORIGINS': ['http://app.example.com'],
        'STORAGE_ROOT': str(tmp_path / 'storage'),
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """
    Create test client.

    The cookie jar is off so each request carries exactly the session cookie
    passed in its headers (see headers_for); with the jar on, Werkzeug
    replaces any Cookie header with the jar contents.
    """
    return app.test_client(use_cookies=False)


@pytest.fixture(scope='function')
def browser_client(app):
    """Test client that keeps cookies between requests, like a browser."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


def make_user(name: str, email: str, role: str = ROLE_USER) -> User:
    user = User(
        name=name,
        email=email,
        username=email.split("@")[0],
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def user_a(db_session):
    """Regular user A."""
    return make_user("User A", "user_a@example.com")


@pytest.fixture(scope='function')
def user_b(db_session):
    """Regular user B."""
    return make_user("User B", "user_b@example.com")


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user("Admin", "admin@example.com", role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def product_a(db_session, user_a):
    """Product owned by user A."""
    product = Product(user_id=user_a.id, name="Widget", sku="WID-001", price=10, quantity=5)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, user_b):
    """Product owned by user B."""
    product = Product(user_id=user_b.id, name="Gadget", sku="GAD-001", price=20, quantity=3)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def category_a(db_session, user_a):
    category = Category(user_id=user_a.id, name="Tools")
    db_session.add(category)
    db_session.commit()
    return category


def token_for(user: User) -> str:
    """Helper to sign a session token for a user."""
    return create_session_token(user.id)


def auth_headers(token: str) -> dict:
    """Helper to create session cookie headers."""
    return {'Cookie': f'session_id={token}'}


def headers_for(user: User) -> dict:
    return auth_headers(token_for(user))
