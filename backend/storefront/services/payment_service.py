# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Processing Service

Payments are recorded by the storefront when the shopper starts a charge
with an external provider and are moved to Completed / Failed when the
provider reports back. Order placement consumes one Completed payment by its
reference.

DESIGN PRINCIPLES:
- A payment reference identifies at most one payment and backs at most one order
- Verification is read-only; the order materializer attaches the payment
- Amounts are compared in integer cents, exact equality, no tolerance
- Refunded is terminal
"""

from __future__ import annotations

from ..extensions import db
from ..models import Order, Payment, User
from ..validation import ConflictError, NotFoundError, ValidationError, require_positive_int
from .concurrency import lock_for_update, run_with_retry


class PaymentError(Exception):
    """Raised for payment verification errors."""
    pass


class PaymentNotFound(PaymentError):
    def __init__(self, message: str = "Payment not found"):
        super().__init__(message)


class PaymentNotCompleted(PaymentError):
    def __init__(self, message: str = "Payment not completed"):
        super().__init__(message)


class AmountMismatch(PaymentError):
    def __init__(self, expected_cents: int, actual_cents: int):
        super().__init__("Payment amount does not match order total")
        self.expected_cents = expected_cents
        self.actual_cents = actual_cents


# =============================================================================
# PAYMENT METHODS (CONSTANTS)
# =============================================================================

METHOD_CARD = "Card"
METHOD_UPI = "UPI"
METHOD_NET_BANKING = "NetBanking"
METHOD_WALLET = "Wallet"
METHOD_COD = "COD"

VALID_PAYMENT_METHODS = [
    METHOD_CARD,
    METHOD_UPI,
    METHOD_NET_BANKING,
    METHOD_WALLET,
    METHOD_COD,
]


# =============================================================================
# PAYMENT STATUS (CONSTANTS)
# =============================================================================

PAYMENT_STATUS_PENDING = "Pending"
PAYMENT_STATUS_COMPLETED = "Completed"
PAYMENT_STATUS_FAILED = "Failed"
PAYMENT_STATUS_REFUNDED = "Refunded"

# Statuses a client may set directly; Refunded goes through refund_payment
SETTABLE_STATUSES = [
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_FAILED,
]


def validate_payment_method(payment_method: str | None) -> str:
    if not payment_method or not str(payment_method).strip():
        raise ValidationError("payment_method is required")
    payment_method = str(payment_method).strip()
    if payment_method not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method: {payment_method}. Must be one of {VALID_PAYMENT_METHODS}")
    return payment_method


# =============================================================================
# RECONCILIATION
# =============================================================================

def verify_payment(reference: str, user_id: int | None = None, *, lock: bool = False) -> Payment:
    """
    Confirm a Completed payment exists for the reference.

    Raises:
        PaymentNotFound: no payment carries the reference (or it belongs to another user)
        PaymentNotCompleted: the payment exists but has not completed
        ConflictError: the payment already backs an order
    """
    query = db.session.query(Payment).filter_by(payment_reference=reference)
    if lock:
        query = lock_for_update(query)
    payment = query.first()

    if payment is None:
        raise PaymentNotFound()
    if user_id is not None and payment.user_id != user_id:
        raise PaymentNotFound()
    if payment.status != PAYMENT_STATUS_COMPLETED:
        raise PaymentNotCompleted()
    if payment.order_id is not None:
        raise ConflictError("Payment has already been used for another order")

    return payment


def reconcile_amount(payment: Payment, expected_cents: int) -> None:
    """Exact cent equality between the recorded payment and the computed total."""
    if payment.amount_cents != expected_cents:
        raise AmountMismatch(expected_cents=expected_cents, actual_cents=payment.amount_cents)


# =============================================================================
# PAYMENT CREATION
# =============================================================================

def create_payment(
    user_id: int,
    amount_cents: int,
    payment_method: str,
    payment_reference: str,
    order_id: int | None = None,
) -> Payment:
    """
    Record a payment attempt in Pending state.

    Without order_id the payment is staged ahead of order placement. With
    order_id the order must belong to the user and must not be paid already.
    """
    user_id = require_positive_int(user_id, "user_id")
    if order_id is not None:
        order_id = require_positive_int(order_id, "order_id")
    payment_method = validate_payment_method(payment_method)
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be positive")
    if not payment_reference or not str(payment_reference).strip():
        raise ValidationError("payment_reference is required")
    payment_reference = str(payment_reference).strip()

    def _op():
        user = db.session.query(User).filter_by(id=user_id).first()
        if user is None:
            raise NotFoundError("User not found")

        if order_id is not None:
            order = lock_for_update(
                db.session.query(Order).filter_by(id=order_id, user_id=user_id)
            ).first()
            if order is None:
                raise NotFoundError("Order not found or does not belong to the user")
            if order.payment_status == PAYMENT_STATUS_COMPLETED:
                raise ValidationError("Payment already completed for this order")

        existing = db.session.query(Payment).filter_by(payment_reference=payment_reference).first()
        if existing is not None:
            raise ConflictError("Payment reference already exists")

        payment = Payment(
            order_id=order_id,
            user_id=user_id,
            amount_cents=amount_cents,
            payment_method=payment_method,
            payment_reference=payment_reference,
            status=PAYMENT_STATUS_PENDING,
        )
        db.session.add(payment)
        db.session.commit()
        return payment

    return run_with_retry(_op)


# =============================================================================
# STATUS CHANGES
# =============================================================================

def update_payment_status(payment_id: int, status: str) -> Payment:
    """
    Move a payment to Pending, Completed or Failed.

    Completed cascades to the attached order's payment_status.
    """
    if status not in SETTABLE_STATUSES:
        raise ValidationError("Invalid payment status")

    def _op():
        payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).first()
        if payment is None:
            raise NotFoundError("Payment not found")

        if payment.status == PAYMENT_STATUS_REFUNDED:
            raise ConflictError("Refunded payments cannot change status")

        if payment.order_id is not None and payment.status == PAYMENT_STATUS_COMPLETED and status != PAYMENT_STATUS_COMPLETED:
            raise ConflictError("Payment is attached to an order; refund it instead")

        payment.status = status

        if status == PAYMENT_STATUS_COMPLETED and payment.order_id is not None:
            order = lock_for_update(db.session.query(Order).filter_by(id=payment.order_id)).first()
            if order is not None:
                order.payment_status = PAYMENT_STATUS_COMPLETED

        db.session.commit()
        return payment

    return run_with_retry(_op)


def refund_payment(payment_id: int) -> Payment:
    """Mark a Completed payment Refunded and cascade to its order."""
    def _op():
        payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).first()
        if payment is None:
            raise NotFoundError("Payment not found")

        if payment.status == PAYMENT_STATUS_REFUNDED:
            raise ConflictError("Payment is already refunded")
        if payment.status != PAYMENT_STATUS_COMPLETED:
            raise ConflictError("Only completed payments can be refunded")

        payment.status = PAYMENT_STATUS_REFUNDED

        if payment.order_id is not None:
            order = lock_for_update(db.session.query(Order).filter_by(id=payment.order_id)).first()
            if order is not None:
                order.payment_status = PAYMENT_STATUS_REFUNDED

        db.session.commit()
        return payment

    return run_with_retry(_op)


# =============================================================================
# QUERIES
# =============================================================================

def get_order_payments(order_id: int) -> list[Payment]:
    return db.session.query(Payment).filter_by(order_id=order_id).order_by(Payment.payment_date, Payment.id).all()


def get_user_payments(user_id: int) -> list[Payment]:
    return db.session.query(Payment).filter_by(user_id=user_id).order_by(
        Payment.payment_date.desc(), Payment.id.desc()
    ).all()


def list_all_payments() -> list[dict]:
    """Every payment with the payer's name, newest first."""
    rows = db.session.query(Payment, User.name).join(
        User, Payment.user_id == User.id
    ).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

    payments = []
    for payment, user_name in rows:
        item = payment.to_dict()
        item["user_name"] = user_name
        payments.append(item)
    return payments
