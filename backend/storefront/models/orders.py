from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z
from storefront.validation import format_cents


class Order(db.Model):
    """
    Order header.

    Created in the same transaction as its OrderLines and the stock OUT
    movements they imply. order_status only moves forward; Cancelled is
    reachable from Pending alone.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.CheckConstraint("total_amount_cents >= 0", name="ck_orders_total_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    shipping_address = db.Column(db.JSON, nullable=False)
    payment_method = db.Column(db.String(32), nullable=True)

    order_status = db.Column(db.String(16), nullable=False, default="Pending", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="Pending", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    lines = db.relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} status={self.order_status!r}>"

    def to_dict(self) -> dict:
        return {
            "order_id": self.id,
            "user_id": self.user_id,
            "total_amount": format_cents(self.total_amount_cents),
            "total_amount_cents": self.total_amount_cents,
            "shipping_address": self.shipping_address,
            "payment_method": self.payment_method,
            "order_status": self.order_status,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

class OrderLine(db.Model):
    """Frozen copy of quantity and unit price at order time."""
    __tablename__ = "order_details"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_details_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    size = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="lines")
    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.price_cents

    def to_dict(self) -> dict:
        return {
            "order_detail_id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "size": self.size,
            "quantity": self.quantity,
            "price": format_cents(self.price_cents),
            "price_cents": self.price_cents,
        }

class Payment(db.Model):
    """
    Externally recorded payment attempt.

    In the payment-first flow the row exists before the order does
    (order_id is NULL) and is attached to the order that consumes it. A
    reference can back at most one order.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("payment_reference", name="uq_payments_reference"),
        db.CheckConstraint("amount_cents > 0", name="ck_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    payment_reference = db.Column(db.String(128), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="Pending", index=True)

    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    order = db.relationship("Order", backref=db.backref("payments", lazy=True))
    user = db.relationship("User", backref=db.backref("payments", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "payment_id": self.id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "amount": format_cents(self.amount_cents),
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "status": self.status,
            "payment_date": to_utc_z(self.payment_date),
            "updated_at": to_utc_z(self.updated_at),
        }
