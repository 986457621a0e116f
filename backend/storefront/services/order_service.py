# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Service - cart to order materialization

place_order turns a user's cart plus a Completed payment into an Order, its
OrderLines and the matching stock OUT movements, then empties the cart. All
writes happen in one transaction: either every row lands or none does.

SERIALIZATION:
- SQLite: BEGIN IMMEDIATE takes the database write lock before the cart is read.
- Other engines: the user row is locked FOR UPDATE (one placement per cart at a
  time) and product rows are locked in ascending id order before the stock
  balance check (no oversell between concurrent orders for the same item).
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import CartLine, Order, OrderLine, Product, User
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    format_cents,
    require_positive_int,
    validate_shipping_address,
)
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .payment_service import (
    PAYMENT_STATUS_COMPLETED,
    reconcile_amount,
    validate_payment_method,
    verify_payment,
)
from .pricing_service import resolve_cart_pricing
from .stock_service import DIRECTION_IN, DIRECTION_OUT, ensure_available, record_movement


class EmptyCart(ValidationError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class MissingPrice(ValidationError):
    """A cart line has no PriceEntry for the buyer's tier."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidStateTransition(ConflictError):
    pass


ORDER_STATUS_PENDING = "Pending"
ORDER_STATUS_SHIPPED = "Shipped"
ORDER_STATUS_DELIVERED = "Delivered"
ORDER_STATUS_CANCELLED = "Cancelled"

VALID_ORDER_STATUSES = [
    ORDER_STATUS_PENDING,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_CANCELLED,
]

# Forward-only; Cancelled only from Pending; Delivered and Cancelled are terminal
ALLOWED_TRANSITIONS = {
    ORDER_STATUS_PENDING: {ORDER_STATUS_SHIPPED, ORDER_STATUS_DELIVERED, ORDER_STATUS_CANCELLED},
    ORDER_STATUS_SHIPPED: {ORDER_STATUS_DELIVERED},
    ORDER_STATUS_DELIVERED: set(),
    ORDER_STATUS_CANCELLED: set(),
}


def _stock_enforced() -> bool:
    return bool(current_app.config.get("STOREFRONT_ENFORCE_STOCK", True))


def _lock_products(product_ids) -> None:
    # Ascending id order so two orders touching the same products cannot deadlock
    lock_for_update(
        db.session.query(Product).filter(Product.id.in_(sorted(product_ids))).order_by(Product.id)
    ).all()


def place_order(user_id, shipping_address, payment_method, payment_reference) -> Order:
    """
    Place an order from the user's cart, paid by a Completed payment.

    Steps:
    1. Validate input (before touching the store)
    2. Verify the payment reference is Completed and unused
    3. Load the cart (EmptyCart if none)
    4. Resolve tier prices (MissingPrice if any line is unpriced) and total
       them; the payment amount must equal the total exactly
    5. Create the Order
    6. Create one OrderLine per cart line, freezing quantity and price
    7. Append a stock OUT movement per line (balance-checked when enforced)
    8. Attach the payment, clear the cart, commit

    Raises:
        ValidationError / EmptyCart / MissingPrice: bad input or cart
        NotFoundError: unknown user
        PaymentNotFound / PaymentNotCompleted / AmountMismatch: payment problems
        ConflictError / InsufficientStock: payment reused or stock short
    """
    if user_id is None or user_id == "":
        raise ValidationError("User ID is required")
    user_id = require_positive_int(user_id, "user_id")
    address = validate_shipping_address(shipping_address)
    if payment_reference is not None:
        payment_reference = str(payment_reference).strip()
    if not payment_method or not payment_reference:
        raise ValidationError("Payment method and reference are required")
    payment_method = validate_payment_method(payment_method)

    def _op():
        begin_write_transaction()

        user = lock_for_update(db.session.query(User).filter_by(id=user_id)).first()
        if user is None:
            raise NotFoundError("User not found")

        payment = verify_payment(payment_reference, user_id=user.id, lock=True)

        cart_lines = db.session.query(CartLine).filter_by(user_id=user.id).order_by(CartLine.id).all()
        if not cart_lines:
            raise EmptyCart()

        priced = resolve_cart_pricing(user.user_type, cart_lines)
        unpriced = [line for line in priced if not line.is_priced]
        if unpriced:
            raise MissingPrice(
                f"No {user.user_type} price for some cart items",
                details={"items": [{"product_id": l.product_id, "size": l.size} for l in unpriced]},
            )

        total_cents = sum(line.line_total_cents for line in priced)
        reconcile_amount(payment, total_cents)

        if _stock_enforced():
            _lock_products({line.product_id for line in priced})
            ensure_available({(line.product_id, line.size): line.quantity for line in priced})

        order = Order(
            user_id=user.id,
            total_amount_cents=total_cents,
            shipping_address=address,
            payment_method=payment_method,
            order_status=ORDER_STATUS_PENDING,
            payment_status=PAYMENT_STATUS_COMPLETED,
        )
        db.session.add(order)
        db.session.flush()  # order.id for lines and movements

        for line in priced:
            db.session.add(OrderLine(
                order_id=order.id,
                product_id=line.product_id,
                size=line.size,
                quantity=line.quantity,
                price_cents=line.unit_price_cents,
            ))

        for line in priced:
            record_movement(
                line.product_id,
                line.size,
                line.quantity,
                DIRECTION_OUT,
                order_id=order.id,
                note=f"Order {order.id}",
                commit=False,
            )

        payment.order_id = order.id

        db.session.query(CartLine).filter_by(user_id=user.id).delete(synchronize_session=False)

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s placed for user %s: %d lines, total_cents=%s",
        order.id, order.user_id, len(order.lines), order.total_amount_cents,
    )
    return order


def _cancel_locked(order: Order) -> Order:
    if order.order_status != ORDER_STATUS_PENDING:
        raise InvalidStateTransition("Only pending orders can be cancelled")

    # Ledger reversal: put the ordered quantities back
    for line in order.lines:
        record_movement(
            line.product_id,
            line.size,
            line.quantity,
            DIRECTION_IN,
            order_id=order.id,
            note=f"Cancel order {order.id}",
            commit=False,
        )

    order.order_status = ORDER_STATUS_CANCELLED
    return order


def cancel_order(order_id: int) -> Order:
    """Cancel a Pending order and restock its lines."""
    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError("Order not found")

        _cancel_locked(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s cancelled", order.id)
    return order


def update_order_status(order_id: int, order_status: str) -> Order:
    """
    Move an order along Pending -> Shipped -> Delivered.

    Setting the current status again is a no-op. Cancelled goes through the
    same path as cancel_order so stock is restored.
    """
    if order_status not in VALID_ORDER_STATUSES:
        raise ValidationError("Invalid order status")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError("Order not found")

        if order.order_status == order_status:
            return order

        if order_status not in ALLOWED_TRANSITIONS[order.order_status]:
            raise InvalidStateTransition(
                f"Cannot change order status from {order.order_status} to {order_status}"
            )

        if order_status == ORDER_STATUS_CANCELLED:
            _cancel_locked(order)
        else:
            order.order_status = order_status

        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order %s status is now %s", order.id, order.order_status)
    return order


# =============================================================================
# QUERIES
# =============================================================================

def get_order(order_id: int) -> Order:
    order = db.session.query(Order).filter_by(id=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def list_user_orders(user_id: int) -> list[Order]:
    """Newest first."""
    return db.session.query(Order).filter_by(user_id=user_id).order_by(
        Order.created_at.desc(), Order.id.desc()
    ).all()


def list_all_orders() -> list[Order]:
    return db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order_details(order_id: int) -> list[dict]:
    """Order lines with product name and per-line total."""
    order = get_order(order_id)

    rows = db.session.query(OrderLine, Product.name).join(
        Product, OrderLine.product_id == Product.id
    ).filter(
        OrderLine.order_id == order.id
    ).order_by(OrderLine.id).all()

    details = []
    for line, product_name in rows:
        item = line.to_dict()
        item["product_name"] = product_name
        item["total_price_cents"] = line.line_total_cents
        item["total_price"] = format_cents(line.line_total_cents)
        item["shipping_address"] = order.shipping_address
        details.append(item)
    return details
