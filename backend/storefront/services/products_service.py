# Overview: Service-layer operations for products; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import PriceEntry, Product
from ..validation import NotFoundError, ValidationError, parse_amount_cents, require_positive_int
from .concurrency import run_with_retry
from .pricing_service import list_prices, validate_tier
from .stock_service import DIRECTION_IN, record_movement, stock_summary


def _clean_sizes(sizes) -> list[tuple[str, int]]:
    if sizes is None:
        return []
    if not isinstance(sizes, list):
        raise ValidationError("sizes must be a list")
    cleaned = []
    for row in sizes:
        if not isinstance(row, dict) or not str(row.get("size") or "").strip():
            raise ValidationError("each size needs a size and quantity")
        cleaned.append((str(row["size"]).strip(), require_positive_int(row.get("quantity"), "quantity")))
    return cleaned


def _clean_prices(prices) -> list[tuple[str, str, int]]:
    if prices is None:
        return []
    if not isinstance(prices, list):
        raise ValidationError("prices must be a list")
    cleaned = []
    seen = set()
    for row in prices:
        if not isinstance(row, dict) or not str(row.get("size") or "").strip():
            raise ValidationError("each price needs a size, user_type and price")
        size = str(row["size"]).strip()
        user_type = validate_tier(row.get("user_type"))
        if (size, user_type) in seen:
            raise ValidationError(f"duplicate price for size {size} and user_type {user_type}")
        seen.add((size, user_type))
        cleaned.append((size, user_type, parse_amount_cents(row.get("price"), "price")))
    return cleaned


def create_product(name: str, description: str | None = None, sizes=None, prices=None) -> Product:
    """
    Create a product with its opening stock (one IN movement per size) and
    tier prices, all in one transaction.
    """
    if not name or not str(name).strip():
        raise ValidationError("name is required")
    size_rows = _clean_sizes(sizes)
    price_rows = _clean_prices(prices)

    def _op():
        product = Product(name=str(name).strip(), description=description)
        db.session.add(product)
        db.session.flush()

        for size, quantity in size_rows:
            record_movement(
                product.id,
                size,
                quantity,
                DIRECTION_IN,
                note="Opening stock",
                commit=False,
            )

        for size, user_type, price_cents in price_rows:
            db.session.add(PriceEntry(
                product_id=product.id,
                size=size,
                user_type=user_type,
                price_cents=price_cents,
            ))

        db.session.commit()
        return product

    return run_with_retry(_op)


def get_product(product_id: int, user_type: str | None = None) -> dict:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError("Product not found")

    data = product.to_dict()
    data["stock"] = stock_summary(product.id)
    data["pricing"] = [p.to_dict() for p in list_prices(product.id, user_type=user_type)]
    return data
