# Overview: Service-layer operations for the stock ledger; encapsulates business logic and database work.

# backend/storefront/services/stock_service.py
"""
Stock Ledger Invariants (authoritative)

- Stock is ledger-derived from StockMovement rows; there is no mutable
  quantity field anywhere.
- Available quantity for (product, size) = SUM(IN.quantity) - SUM(OUT.quantity),
  optionally as-of (inclusive: occurred_at <= as_of).
- Movements are append-only: never updated, never deleted. Corrections and
  order cancellations append a compensating movement.
- record_movement does not look at the balance. Callers that must not drive
  a balance negative call ensure_available inside the same transaction,
  after taking the write lock, before appending the OUT row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func

from ..extensions import db
from ..models import Product, StockMovement
from ..validation import ConflictError, NotFoundError, ValidationError, require_positive_int
from .concurrency import lock_for_update, run_with_retry


DIRECTION_IN = "IN"
DIRECTION_OUT = "OUT"

VALID_DIRECTIONS = (DIRECTION_IN, DIRECTION_OUT)


class InsufficientStock(ConflictError):
    """Raised when an OUT movement would drive a balance negative."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _signed_quantity():
    return case(
        (StockMovement.direction == DIRECTION_IN, StockMovement.quantity),
        else_=-StockMovement.quantity,
    )


def _normalize_size(size) -> str:
    if size is None or str(size).strip() == "":
        raise ValidationError("size is required")
    size = str(size).strip()
    max_length = StockMovement.__table__.c.size.type.length
    if len(size) > max_length:
        raise ValidationError(f"size exceeds max length {max_length}")
    return size


def available_quantity(product_id: int, size: str, as_of: datetime | None = None) -> int:
    """
    Signed sum of movements for (product, size).

    Returns 0 when no movements exist; an unknown key is not an error.
    """
    q = db.session.query(
        func.coalesce(func.sum(_signed_quantity()), 0)
    ).filter(
        StockMovement.product_id == product_id,
        StockMovement.size == str(size),
    )
    if as_of is not None:
        q = q.filter(StockMovement.occurred_at <= as_of)

    return int(q.scalar() or 0)


def available_quantities(keys) -> dict[tuple[int, str], int]:
    """Balances for several (product_id, size) keys in one query; missing keys map to 0."""
    keys = list(keys)
    if not keys:
        return {}

    product_ids = {product_id for product_id, _ in keys}
    rows = db.session.query(
        StockMovement.product_id,
        StockMovement.size,
        func.coalesce(func.sum(_signed_quantity()), 0),
    ).filter(
        StockMovement.product_id.in_(product_ids),
    ).group_by(
        StockMovement.product_id,
        StockMovement.size,
    ).all()

    balances = {(product_id, size): int(total) for product_id, size, total in rows}
    return {key: balances.get(key, 0) for key in keys}


def ensure_available(requested: dict[tuple[int, str], int]) -> None:
    """
    Raise InsufficientStock if any requested (product, size) quantity exceeds
    its current balance.

    Must run after begin_write_transaction/lock_for_update so the balance
    cannot change between this check and the OUT insert.
    """
    balances = available_quantities(requested.keys())

    insufficient = []
    for (product_id, size), qty in requested.items():
        on_hand = balances[(product_id, size)]
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "size": size,
                "requested_quantity": qty,
                "available": on_hand,
            })

    if insufficient:
        raise InsufficientStock(
            "Insufficient stock to fulfil order",
            details={"items": insufficient},
        )


def record_movement(
    product_id: int,
    size: str,
    quantity: int,
    direction: str,
    *,
    order_id: int | None = None,
    note: str | None = None,
    occurred_at: datetime | None = None,
    commit: bool = True,
) -> StockMovement:
    """
    Append one immutable movement row.

    quantity must be a positive integer and direction IN or OUT. The balance
    is not checked here (see ensure_available).
    """
    quantity = require_positive_int(quantity, "quantity")
    if direction not in VALID_DIRECTIONS:
        raise ValidationError(f"stock_type must be one of {list(VALID_DIRECTIONS)}")
    size = _normalize_size(size)

    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError("Product not found")

    movement = StockMovement(
        product_id=product.id,
        size=size,
        quantity=quantity,
        direction=direction,
        order_id=order_id,
        note=note,
    )
    if occurred_at is not None:
        movement.occurred_at = occurred_at

    db.session.add(movement)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return movement


def post_manual_movement(
    product_id: int,
    size: str,
    quantity: int,
    direction: str,
    note: str | None = None,
    enforce_available: bool = True,
) -> StockMovement:
    """
    Stock intake or write-off from the admin API.

    OUT movements are balance-checked under the product row lock when
    enforce_available is set.
    """
    def _op():
        if direction == DIRECTION_OUT and enforce_available:
            product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
            if product is None:
                raise NotFoundError("Product not found")
            qty = require_positive_int(quantity, "quantity")
            ensure_available({(product.id, _normalize_size(size)): qty})

        return record_movement(
            product_id,
            size,
            quantity,
            direction,
            note=note,
            commit=True,
        )

    return run_with_retry(_op)


def list_movements(product_id: int, size: str | None = None) -> list[StockMovement]:
    q = db.session.query(StockMovement).filter_by(product_id=product_id)
    if size is not None:
        q = q.filter_by(size=str(size))
    return q.order_by(StockMovement.occurred_at, StockMovement.id).all()


def stock_summary(product_id: int) -> list[dict]:
    """Per-size totals for one product, sizes in alphabetical order."""
    rows = db.session.query(
        StockMovement.size,
        func.coalesce(func.sum(case((StockMovement.direction == DIRECTION_IN, StockMovement.quantity), else_=0)), 0),
        func.coalesce(func.sum(case((StockMovement.direction == DIRECTION_OUT, StockMovement.quantity), else_=0)), 0),
    ).filter(
        StockMovement.product_id == product_id,
    ).group_by(
        StockMovement.size,
    ).order_by(
        StockMovement.size,
    ).all()

    return [
        {
            "product_id": product_id,
            "size": size,
            "total_in": int(total_in),
            "total_out": int(total_out),
            "available": int(total_in) - int(total_out),
        }
        for size, total_in, total_out in rows
    ]
