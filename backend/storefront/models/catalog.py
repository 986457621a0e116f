from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z
from storefront.validation import format_cents

class Product(db.Model):
    """Catalog entry. Stock and prices hang off it keyed by (product, size)."""
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "product_id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }

class PriceEntry(db.Model):
    """
    Tier price for one (product, size).

    Upserted: a second write for the same (product_id, size, user_type)
    replaces the price instead of adding a row.
    """
    __tablename__ = "product_pricing"
    __table_args__ = (
        db.UniqueConstraint("product_id", "size", "user_type", name="uq_pricing_product_size_tier"),
        db.CheckConstraint("price_cents >= 0", name="ck_pricing_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size = db.Column(db.String(16), nullable=False)
    user_type = db.Column(db.String(32), nullable=False)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("prices", lazy=True))

    def to_dict(self) -> dict:
        return {
            "price_id": self.id,
            "product_id": self.product_id,
            "size": self.size,
            "user_type": self.user_type,
            "price": format_cents(self.price_cents),
            "price_cents": self.price_cents,
            "updated_at": to_utc_z(self.updated_at),
        }

class StockMovement(db.Model):
    """
    Append-only stock ledger row.

    Available quantity for (product, size) is SUM(IN) - SUM(OUT); there is no
    mutable on-hand counter. Rows are never updated or deleted.
    """
    __tablename__ = "product_stock"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_quantity_positive"),
        db.CheckConstraint("direction IN ('IN', 'OUT')", name="ck_stock_direction"),
        db.Index("ix_stock_product_size_occurred", "product_id", "size", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size = db.Column(db.String(16), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    direction = db.Column(db.String(3), nullable=False, index=True)

    # Set when the movement was written by order placement or cancellation
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    note = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))

    def __repr__(self) -> str:
        return f"<StockMovement {self.id}: {self.direction} {self.quantity} of {self.product_id}/{self.size}>"

    def to_dict(self) -> dict:
        return {
            "stock_id": self.id,
            "product_id": self.product_id,
            "size": self.size,
            "quantity": self.quantity,
            "stock_type": self.direction,
            "order_id": self.order_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
        }
