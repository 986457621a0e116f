# Overview: Pytest coverage for concurrent order placement against a file-backed database.

"""
Concurrent checkout tests.

These run against a temporary SQLite file (not the shared in-memory
database) so each thread gets its own connection and the write lock is real.
"""

import threading

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import CartLine, Order, Payment, PriceEntry, Product, StockMovement, User
from storefront.services import order_service, stock_service

from conftest import SHIPPING_ADDRESS, TEST_CONFIG


@pytest.fixture
def file_app(tmp_path):
    app = create_app({**TEST_CONFIG, "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'checkout.sqlite3'}"})
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def seed(app, shoppers, quantity_each, opening_stock=10):
    """One product priced 100.00 for Customers; each shopper has a cart and a matching payment."""
    with app.app_context():
        product = Product(name="Tee")
        db.session.add(product)
        db.session.flush()
        db.session.add(PriceEntry(product_id=product.id, size="M", user_type="Customer", price_cents=10000))
        db.session.add(StockMovement(product_id=product.id, size="M", quantity=opening_stock, direction="IN"))

        ids = []
        for n in range(shoppers):
            user = User(name=f"u{n}", email=f"u{n}@example.com", password_hash="x", user_type="Customer")
            db.session.add(user)
            db.session.flush()
            db.session.add(CartLine(user_id=user.id, product_id=product.id, size="M", quantity=quantity_each))
            ids.append(user.id)
        db.session.commit()
        return product.id, ids


def run_concurrently(app, jobs):
    results = []
    lock = threading.Lock()

    def worker(user_id, reference):
        with app.app_context():
            try:
                order = order_service.place_order(user_id, SHIPPING_ADDRESS, "Card", reference)
                with lock:
                    results.append(order.id)
            except Exception as exc:
                with lock:
                    results.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=job) for job in jobs]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_same_cart_placed_twice_yields_one_order(file_app):
    product_id, (user_id,) = seed(file_app, shoppers=1, quantity_each=2)
    with file_app.app_context():
        for ref in ("pay_a", "pay_b"):
            db.session.add(Payment(user_id=user_id, amount_cents=20000, payment_method="Card",
                                   payment_reference=ref, status="Completed"))
        db.session.commit()

    results = run_concurrently(file_app, [(user_id, "pay_a"), (user_id, "pay_b")])

    orders = [r for r in results if isinstance(r, int)]
    failures = [r for r in results if not isinstance(r, int)]
    assert len(orders) == 1
    assert [str(f) for f in failures] == ["Cart is empty"]

    with file_app.app_context():
        assert db.session.query(Order).count() == 1
        assert stock_service.available_quantity(product_id, "M") == 8


def test_competing_orders_do_not_oversell(file_app):
    product_id, user_ids = seed(file_app, shoppers=2, quantity_each=6)
    with file_app.app_context():
        for user_id in user_ids:
            db.session.add(Payment(user_id=user_id, amount_cents=60000, payment_method="Card",
                                   payment_reference=f"pay_{user_id}", status="Completed"))
        db.session.commit()

    results = run_concurrently(file_app, [(uid, f"pay_{uid}") for uid in user_ids])

    orders = [r for r in results if isinstance(r, int)]
    failures = [r for r in results if not isinstance(r, int)]
    assert len(orders) == 1
    assert type(failures[0]).__name__ == "InsufficientStock"

    with file_app.app_context():
        assert stock_service.available_quantity(product_id, "M") == 4
        # The losing shopper keeps their cart
        assert db.session.query(CartLine).count() == 1
