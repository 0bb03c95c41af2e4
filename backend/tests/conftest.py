"""
Pytest fixtures for dealernet backend tests.

Provides the in-memory database, the test client, one account per role in a
complete hierarchy (admin -> stalkist -> dealer -> salesman) and bearer
headers for each of them.
"""

import pytest

from dealernet import create_app
from dealernet.extensions import db
from dealernet.models import Product, User
from dealernet.services.auth_service import create_user
from dealernet.services import session_service

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'RECEIPT_UPLOAD_DIR': str(tmp_path_factory.mktemp("receipts")),
        'DEFAULT_UPI_ID': 'dealernet@okbank',
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


def make_user(name: str, email: str, role: str, created_by: User | None = None) -> User:
    """Create an account quickly (low bcrypt cost)."""
    return create_user(
        name,
        email,
        TEST_PASSWORD,
        role,
        created_by_id=created_by.id if created_by else None,
        bcrypt_rounds=4,
    )


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user("Admin", "admin@dealernet.test", "admin")


@pytest.fixture(scope='function')
def stalkist(admin):
    return make_user("North Stalkist", "stalkist@dealernet.test", "stalkist", admin)


@pytest.fixture(scope='function')
def dealer(stalkist):
    return make_user("Dealer A", "dealer.a@dealernet.test", "dealer", stalkist)


@pytest.fixture(scope='function')
def dealer_b(stalkist):
    return make_user("Dealer B", "dealer.b@dealernet.test", "dealer", stalkist)


@pytest.fixture(scope='function')
def salesman(dealer):
    return make_user("Ravi", "ravi@dealernet.test", "salesman", dealer)


@pytest.fixture(scope='function')
def product(db_session, admin):
    """100 strips, 10 packets per strip at 5.00 per packet."""
    p = Product(
        title="Tea 50g",
        description="Loose leaf",
        packet_price_cents=500,
        packets_per_strip=10,
        stock=100,
        created_by_id=admin.id,
    )
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products with a given stock."""
    def _make(title="Biscuits", stock=10, packet_price_cents=1000, packets_per_strip=12):
        p = Product(
            title=title,
            packet_price_cents=packet_price_cents,
            packets_per_strip=packets_per_strip,
            stock=stock,
        )
        db_session.add(p)
        db_session.commit()
        return p
    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user: User) -> dict:
    _session, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def stalkist_headers(stalkist):
    return headers_for(stalkist)


@pytest.fixture(scope='function')
def dealer_headers(dealer):
    return headers_for(dealer)


@pytest.fixture(scope='function')
def dealer_b_headers(dealer_b):
    return headers_for(dealer_b)


@pytest.fixture(scope='function')
def salesman_headers(salesman):
    return headers_for(salesman)


def fresh(model, ident):
    """Re-read a row from the database, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(model, ident)
