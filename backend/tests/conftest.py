"""
Pytest fixtures for storefront backend tests.

Provides an in-memory database, the Flask test client, and small factories
for users, products, tier prices, stock and payments.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Payment, PriceEntry, Product, StockMovement, User


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'STOREFRONT_ENFORCE_STOCK': True,
    'STOREFRONT_PRICE_TIERS': ('Retailer', 'Customer'),
}

SHIPPING_ADDRESS = {"line1": "12 Market Road", "city": "Pune", "postal_code": "411001"}


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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(session, email, user_type="Customer", name=None):
    # Hashing is covered by the auth tests; a dummy hash keeps fixtures fast
    user = User(
        name=name or email.split("@")[0],
        email=email,
        password_hash="x",
        user_type=user_type,
    )
    session.add(user)
    session.commit()
    return user


def make_payment(session, user, amount_cents, reference, status="Completed", method="Card"):
    payment = Payment(
        user_id=user.id,
        amount_cents=amount_cents,
        payment_method=method,
        payment_reference=reference,
        status=status,
    )
    session.add(payment)
    session.commit()
    return payment


@pytest.fixture(scope='function')
def customer(db_session):
    """A Customer-tier shopper."""
    return make_user(db_session, "asha@example.com", "Customer")


@pytest.fixture(scope='function')
def retailer(db_session):
    """A Retailer-tier shopper."""
    return make_user(db_session, "ravi@example.com", "Retailer")


@pytest.fixture(scope='function')
def product(db_session):
    """A product with Customer and Retailer prices for size M and 10 units in stock."""
    product = Product(name="Cotton Tee", description="Crew neck")
    db_session.add(product)
    db_session.flush()

    db_session.add_all([
        PriceEntry(product_id=product.id, size="M", user_type="Customer", price_cents=25000),
        PriceEntry(product_id=product.id, size="M", user_type="Retailer", price_cents=20000),
        StockMovement(product_id=product.id, size="M", quantity=10, direction="IN", note="Opening stock"),
    ])
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def unpriced_product(db_session):
    """A product with stock but no prices at all."""
    product = Product(name="Sample Cap")
    db_session.add(product)
    db_session.flush()
    db_session.add(StockMovement(product_id=product.id, size="OS", quantity=5, direction="IN"))
    db_session.commit()
    return product
