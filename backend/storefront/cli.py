# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Create a demo admin, a demo customer and one product with stock and prices.
#
# Stock inspection:
# - python -m flask stock balance 1 M [--as-of 2026-01-31T23:59:59Z]
#   Print the ledger balance for (product, size).
#
# Order inspection:
# - python -m flask orders list [--user-id 4]
#   List orders, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import order_service, products_service, stock_service
from .services.auth_service import register_user
from .time_utils import parse_iso_datetime
from .validation import ValidationError


DEMO_PASSWORD = "Password123"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Idempotent demo data: admin, customer, one product with stock and tier prices."""
    accounts = [
        ("Admin", "admin@storefront.local", "Retailer", True),
        ("Demo Customer", "customer@storefront.local", "Customer", False),
    ]
    for name, email, user_type, is_admin in accounts:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"PASS Using existing user: {email}")
            continue
        user = register_user(name, email, DEMO_PASSWORD, user_type, is_admin=is_admin)
        click.echo(f"PASS Created user: {email} (ID: {user.id}, tier: {user_type})")

    try:
        product = products_service.create_product(
            name="Demo Tee",
            description="Cotton crew neck",
            sizes=[{"size": "S", "quantity": 20}, {"size": "M", "quantity": 20}, {"size": "L", "quantity": 10}],
            prices=[
                {"size": size, "user_type": tier, "price": price}
                for size in ("S", "M", "L")
                for tier, price in (("Customer", "250.00"), ("Retailer", "200.00"))
            ],
        )
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created product: {product.name} (ID: {product.id})")
    click.echo(f"\nDemo password for both users: {DEMO_PASSWORD}")


@click.group('stock')
def stock_group():
    """Stock ledger inspection."""


@stock_group.command('balance')
@click.argument('product_id', type=int)
@click.argument('size')
@click.option('--as-of', help='ISO-8601 timestamp; movements after it are ignored')
@with_appcontext
def stock_balance(product_id, size, as_of):
    """Print the available quantity for PRODUCT_ID and SIZE."""
    try:
        as_of_dt = parse_iso_datetime(as_of)
    except ValueError:
        raise click.BadParameter('must be an ISO-8601 timestamp', param_hint='--as-of')
    click.echo(stock_service.available_quantity(product_id, size, as_of=as_of_dt))


@click.group('orders')
def orders_group():
    """Order inspection."""


@orders_group.command('list')
@click.option('--user-id', type=int, help='Filter by user ID')
@with_appcontext
def list_orders(user_id):
    """List orders, newest first."""
    if user_id:
        orders = order_service.list_user_orders(user_id)
    else:
        orders = order_service.list_all_orders()

    if not orders:
        click.echo("No orders found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<6} {'User':<6} {'Total':>12} {'Order':<12} {'Payment':<12} {'Created'}")
    click.echo("="*80)

    for order in orders:
        data = order.to_dict()
        click.echo(
            f"{order.id:<6} {order.user_id:<6} {data['total_amount']:>12} "
            f"{order.order_status:<12} {order.payment_status:<12} {data['created_at']}"
        )

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(orders_group)
