# Overview: Pytest coverage for the flask CLI command groups.

from storefront.models import Product, User


def test_stock_balance(app, db_session, product):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["stock", "balance", str(product.id), "M"])
    assert result.exit_code == 0
    assert result.output.strip() == "10"

    result = runner.invoke(args=["stock", "balance", str(product.id), "M", "--as-of", "2000-01-01T00:00:00Z"])
    assert result.output.strip() == "0"

    result = runner.invoke(args=["stock", "balance", str(product.id), "M", "--as-of", "yesterday"])
    assert result.exit_code != 0


def test_seed_demo_and_list_orders(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed-demo"])
    assert result.exit_code == 0, result.output
    assert db_session.query(User).count() == 2
    assert db_session.query(Product).filter_by(name="Demo Tee").count() == 1

    result = runner.invoke(args=["orders", "list"])
    assert "No orders found." in result.output
