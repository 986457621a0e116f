from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z

class User(db.Model):
    """
    Customer and staff accounts.

    PRICE TIER: user_type selects which PriceEntry rows apply to this user
    (e.g. "Retailer" vs "Customer"). It is assigned at registration and every
    pricing lookup goes through it.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.UniqueConstraint("phone", name="uq_users_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    user_type = db.Column(db.String(32), nullable=False, index=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} user_type={self.user_type!r}>"

    def to_dict(self) -> dict:
        return {
            "user_id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "user_type": self.user_type,
            "is_admin": self.is_admin,
            "created_at": to_utc_z(self.created_at),
        }
