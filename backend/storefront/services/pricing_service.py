# Overview: Service-layer operations for tier pricing; encapsulates business logic and database work.

"""
Pricing Resolver

Every user carries a price tier (user_type). A PriceEntry fixes the unit
price of one (product, size) for one tier. Resolution never guesses: a cart
line with no entry for the user's tier comes back with unit_price_cents=None
and the caller decides what that means. Order placement refuses the order.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import PriceEntry, Product
from ..validation import NotFoundError, ValidationError
from .concurrency import run_with_retry


@dataclass(frozen=True)
class PricedLine:
    """A cart line paired with the unit price for the buyer's tier."""
    cart_line_id: int
    product_id: int
    size: str
    quantity: int
    unit_price_cents: int | None

    @property
    def is_priced(self) -> bool:
        return self.unit_price_cents is not None

    @property
    def line_total_cents(self) -> int:
        if self.unit_price_cents is None:
            raise ValueError(f"cart line {self.cart_line_id} has no price")
        return self.quantity * self.unit_price_cents


def known_tiers() -> tuple[str, ...]:
    return tuple(current_app.config.get("STOREFRONT_PRICE_TIERS", ()))


def validate_tier(user_type: str | None) -> str:
    if not user_type or not str(user_type).strip():
        raise ValidationError("user_type is required")
    user_type = str(user_type).strip()
    tiers = known_tiers()
    if tiers and user_type not in tiers:
        raise ValidationError(f"user_type must be one of {list(tiers)}")
    return user_type


def resolve_price(product_id: int, size: str, user_type: str) -> int | None:
    """Unit price in cents for (product, size) at a tier, or None when unpriced."""
    entry = db.session.query(PriceEntry).filter_by(
        product_id=product_id,
        size=str(size),
        user_type=user_type,
    ).first()
    return entry.price_cents if entry else None


def resolve_cart_pricing(user_type: str, cart_lines) -> list[PricedLine]:
    """
    Pair each cart line with its tier price. Output keeps the input order
    and has exactly one PricedLine per cart line; no side effects.
    """
    cart_lines = list(cart_lines)
    if not cart_lines:
        return []

    product_ids = {line.product_id for line in cart_lines}
    entries = db.session.query(PriceEntry).filter(
        PriceEntry.product_id.in_(product_ids),
        PriceEntry.user_type == user_type,
    ).all()
    prices = {(e.product_id, e.size): e.price_cents for e in entries}

    return [
        PricedLine(
            cart_line_id=line.id,
            product_id=line.product_id,
            size=line.size,
            quantity=line.quantity,
            unit_price_cents=prices.get((line.product_id, line.size)),
        )
        for line in cart_lines
    ]


def upsert_price(product_id: int, size: str, user_type: str, price_cents: int) -> PriceEntry:
    """Create or replace the price for (product, size, tier). Last write wins."""
    user_type = validate_tier(user_type)
    if size is None or str(size).strip() == "":
        raise ValidationError("size is required")
    size = str(size).strip()

    def _op():
        product = db.session.query(Product).filter_by(id=product_id).first()
        if product is None:
            raise NotFoundError("Product not found")

        entry = db.session.query(PriceEntry).filter_by(
            product_id=product_id, size=size, user_type=user_type,
        ).first()
        if entry is None:
            entry = PriceEntry(
                product_id=product_id,
                size=size,
                user_type=user_type,
                price_cents=price_cents,
            )
            db.session.add(entry)
        else:
            entry.price_cents = price_cents

        db.session.commit()
        return entry

    try:
        return run_with_retry(_op)
    except IntegrityError:
        # Lost the race with a concurrent first insert; the row exists now
        return run_with_retry(_op)


def update_price(price_id: int, price_cents: int) -> PriceEntry:
    def _op():
        entry = db.session.query(PriceEntry).filter_by(id=price_id).first()
        if entry is None:
            raise NotFoundError("Pricing entry not found")
        entry.price_cents = price_cents
        db.session.commit()
        return entry

    return run_with_retry(_op)


def delete_price(price_id: int) -> dict:
    def _op():
        entry = db.session.query(PriceEntry).filter_by(id=price_id).first()
        if entry is None:
            raise NotFoundError("Pricing entry not found")
        snapshot = entry.to_dict()
        db.session.delete(entry)
        db.session.commit()
        return snapshot

    return run_with_retry(_op)


def list_prices(product_id: int, user_type: str | None = None) -> list[PriceEntry]:
    q = db.session.query(PriceEntry).filter_by(product_id=product_id)
    if user_type is not None:
        q = q.filter_by(user_type=user_type)
    return q.order_by(PriceEntry.size, PriceEntry.user_type).all()
