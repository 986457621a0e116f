# Overview: Service-layer operations for accounts; encapsulates business logic and database work.

"""
Account Service

Registration and credential checks only. Sessions and tokens are handled
outside this backend.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Email and phone are unique across all users
- user_type (price tier) is fixed at registration
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..validation import ConflictError, NotFoundError, ValidationError
from .pricing_service import validate_tier


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def _text(value, field: str, *, required: bool = True, max_length: int | None = None) -> str | None:
    """Strip a text field; JSON numbers, lists and objects are rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return value


def _check_unique(email: str | None, phone: str | None, exclude_user_id: int | None = None) -> None:
    if email:
        q = db.session.query(User).filter_by(email=email)
        if exclude_user_id is not None:
            q = q.filter(User.id != exclude_user_id)
        if q.first():
            raise ConflictError("Email already exists")
    if phone:
        q = db.session.query(User).filter_by(phone=phone)
        if exclude_user_id is not None:
            q = q.filter(User.id != exclude_user_id)
        if q.first():
            raise ConflictError("Phone already exists")


def register_user(
    name: str,
    email: str,
    password: str,
    user_type: str,
    phone: str | None = None,
    address: str | None = None,
    is_admin: bool = False,
) -> User:
    if not name or not email or not password or not user_type:
        raise ValidationError("Name, email, password, and user type are required")

    name = _text(name, "name", max_length=255)
    email = _text(email, "email", max_length=255).lower()
    phone = _text(phone, "phone", required=False, max_length=32)
    address = _text(address, "address", required=False)
    if not isinstance(password, str):
        raise PasswordValidationError("Password must be a string")
    user_type = validate_tier(user_type)

    _check_unique(email, phone)

    user = User(
        name=name,
        email=email,
        phone=phone,
        address=address,
        password_hash=hash_password(password),
        user_type=user_type,
        is_admin=is_admin,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User:
    """Return the user for valid credentials; a single error for any mismatch."""
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Invalid email or password")

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        raise ValidationError("Invalid email or password")
    return user


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(user_id: int, name=None, email=None, phone=None, address=None) -> User:
    """
    Update profile fields. Only the keys given (not None) change; user_type
    and password are not editable here.
    """
    user = get_user(user_id)

    changes = {}
    if name is not None:
        changes["name"] = _text(name, "name", max_length=255)
    if email is not None:
        changes["email"] = _text(email, "email", max_length=255).lower()
    if phone is not None:
        changes["phone"] = _text(phone, "phone", required=False, max_length=32)
    if address is not None:
        changes["address"] = _text(address, "address", required=False)

    _check_unique(changes.get("email"), changes.get("phone"), exclude_user_id=user.id)
    for key, value in changes.items():
        setattr(user, key, value)

    db.session.commit()
    return user


def change_password(user_id: int, old_password: str, new_password: str) -> User:
    """Replace the password after checking the current one."""
    if not old_password or not new_password:
        raise ValidationError("All fields are required")
    if not isinstance(old_password, str) or not isinstance(new_password, str):
        raise ValidationError("Passwords must be strings")

    user = get_user(user_id)
    if not verify_password(old_password, user.password_hash):
        raise ValidationError("Old password is incorrect")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user
