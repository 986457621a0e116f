from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z

class CartLine(db.Model):
    """One line of a user's in-progress cart, unique per (user, product, size)."""
    __tablename__ = "cart"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", "size", name="uq_cart_user_product_size"),
        db.CheckConstraint("quantity > 0", name="ck_cart_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "cart_id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "size": self.size,
            "quantity": self.quantity,
            "created_at": to_utc_z(self.created_at),
        }

class Favorite(db.Model):
    __tablename__ = "favorites"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_favorites_user_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "favorite_id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "created_at": to_utc_z(self.created_at),
        }
