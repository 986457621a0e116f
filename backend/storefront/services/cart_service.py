# Overview: Service-layer operations for carts and favorites; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CartLine, Favorite, PriceEntry, Product, User
from ..validation import NotFoundError, ValidationError, format_cents, require_positive_int
from .concurrency import lock_for_update, run_with_retry
from .stock_service import available_quantity


def _get_user(user_id: int) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def _get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


# =============================================================================
# CART
# =============================================================================

def add_to_cart(user_id: int, product_id: int, size: str, quantity: int) -> CartLine:
    """
    Add quantity to the (user, product, size) line, creating it on first add.
    """
    quantity = require_positive_int(quantity, "quantity")
    if size is None or str(size).strip() == "":
        raise ValidationError("size is required")
    size = str(size).strip()

    def _op():
        _get_user(user_id)
        _get_product(product_id)

        line = lock_for_update(
            db.session.query(CartLine).filter_by(user_id=user_id, product_id=product_id, size=size)
        ).first()
        if line is None:
            line = CartLine(user_id=user_id, product_id=product_id, size=size, quantity=quantity)
            db.session.add(line)
        else:
            line.quantity = line.quantity + quantity

        db.session.commit()
        return line

    try:
        return run_with_retry(_op)
    except IntegrityError:
        # A concurrent first add created the line; accumulate onto it
        return run_with_retry(_op)


def get_cart(user_id: int) -> list[dict]:
    """
    Cart lines, newest first, with product name and the user's tier price.

    Lines without a tier price are still listed (price None) so the shopper
    can see them; order placement rejects them.
    """
    user = _get_user(user_id)

    rows = db.session.query(CartLine, Product.name, PriceEntry.price_cents).join(
        Product, CartLine.product_id == Product.id
    ).outerjoin(
        PriceEntry,
        and_(
            PriceEntry.product_id == CartLine.product_id,
            PriceEntry.size == CartLine.size,
            PriceEntry.user_type == user.user_type,
        ),
    ).filter(
        CartLine.user_id == user.id
    ).order_by(CartLine.id.desc()).all()

    items = []
    for line, product_name, price_cents in rows:
        item = line.to_dict()
        item["product_name"] = product_name
        item["price_cents"] = price_cents
        item["price"] = format_cents(price_cents)
        item["line_total"] = format_cents(price_cents * line.quantity) if price_cents is not None else None
        items.append(item)
    return items


def update_cart_quantity(cart_id: int, quantity: int) -> CartLine:
    """Set a line's quantity; it may not exceed available stock for the size."""
    if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero")

    def _op():
        line = lock_for_update(db.session.query(CartLine).filter_by(id=cart_id)).first()
        if line is None:
            raise NotFoundError("Cart item not found")

        available = available_quantity(line.product_id, line.size)
        if quantity > available:
            raise ValidationError(f"Only {available} items are available in stock")

        line.quantity = quantity
        db.session.commit()
        return line

    return run_with_retry(_op)


def remove_from_cart(cart_id: int) -> None:
    def _op():
        line = db.session.query(CartLine).filter_by(id=cart_id).first()
        if line is None:
            raise NotFoundError("Cart item not found")
        db.session.delete(line)
        db.session.commit()

    run_with_retry(_op)


# =============================================================================
# FAVORITES
# =============================================================================

def add_favorite(user_id: int, product_id: int) -> tuple[Favorite, bool]:
    """
    Mark a product as favorite. Idempotent.

    Returns:
        (favorite, created) where created is False if it already existed
    """
    def _op():
        _get_user(user_id)
        _get_product(product_id)

        favorite = db.session.query(Favorite).filter_by(user_id=user_id, product_id=product_id).first()
        if favorite is not None:
            return favorite, False

        favorite = Favorite(user_id=user_id, product_id=product_id)
        db.session.add(favorite)
        db.session.commit()
        return favorite, True

    try:
        return run_with_retry(_op)
    except IntegrityError:
        return run_with_retry(_op)


def get_favorites(user_id: int) -> list[dict]:
    """Favorites, newest first, each with its per-size prices for the user's tier."""
    user = _get_user(user_id)

    favorites = db.session.query(Favorite, Product.name).join(
        Product, Favorite.product_id == Product.id
    ).filter(
        Favorite.user_id == user.id
    ).order_by(Favorite.id.desc()).all()

    product_ids = {fav.product_id for fav, _ in favorites}
    prices: dict[int, list[dict]] = {}
    if product_ids:
        entries = db.session.query(PriceEntry).filter(
            PriceEntry.product_id.in_(product_ids),
            PriceEntry.user_type == user.user_type,
        ).order_by(PriceEntry.size).all()
        for entry in entries:
            prices.setdefault(entry.product_id, []).append({
                "size": entry.size,
                "price": format_cents(entry.price_cents),
                "price_cents": entry.price_cents,
            })

    items = []
    for fav, product_name in favorites:
        item = fav.to_dict()
        item["product_name"] = product_name
        item["prices"] = prices.get(fav.product_id, [])
        items.append(item)
    return items


def remove_favorite(favorite_id: int) -> None:
    def _op():
        favorite = db.session.query(Favorite).filter_by(id=favorite_id).first()
        if favorite is None:
            raise NotFoundError("Favorite not found")
        db.session.delete(favorite)
        db.session.commit()

    run_with_retry(_op)
